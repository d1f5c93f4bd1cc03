from .config import (
    FetchSettings,
    Timeouts
)

from .options import (
    FetchOptions,
    ResolvedOptions,
    RedirectMode,
    CacheMode,
    CredentialsMode
)

from .request import (
    BodyKind,
    RequestBody,
    Request,
    RequestDescriptor
)

from .response import (
    Response,
    build_response
)

from .metrics import (
    RequestMetrics,
    MetricsSnapshot
)

__all__ = [
    # Config Models
    "FetchSettings",
    "Timeouts",

    # Option Models
    "FetchOptions",
    "ResolvedOptions",
    "RedirectMode",
    "CacheMode",
    "CredentialsMode",

    # Request / Response Models
    "BodyKind",
    "RequestBody",
    "Request",
    "RequestDescriptor",
    "Response",
    "build_response",

    # Metrics Models
    "RequestMetrics",
    "MetricsSnapshot",
]
