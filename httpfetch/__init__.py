from .client import (
    FetchClient,
    fetch,
    get_default_client,
    close_default_client
)
from .abort import (
    AbortController,
    AbortSignal
)
from .cache import (
    CacheStore,
    CacheEntry
)
from .cookies import (
    CookieJar,
    origin_of
)
from .dispatch import (
    Dispatcher,
    TransportPath,
    select_path
)
from .race import settle_first
from .models import (
    FetchSettings,
    Timeouts,
    FetchOptions,
    ResolvedOptions,
    RedirectMode,
    CacheMode,
    CredentialsMode,
    BodyKind,
    RequestBody,
    Request,
    RequestDescriptor,
    Response,
)
from .transports import (
    AcceleratedTransport,
    FallbackTransport,
    TransportResult,
    HttpxAcceleratedTransport,
    HttpxFallbackTransport,
)
from .exceptions import (
    # Base exception
    FetchError,
    # Validation errors
    ValidationError,
    InvalidURLError,
    UnsupportedProtocolError,
    InvalidRedirectModeError,
    InvalidSettingsError,
    # Cache errors
    CacheMissError,
    # Network errors
    NetworkError,
    ConnectionError,
    # Redirect errors
    RedirectError,
    TooManyRedirectsError,
    RedirectLoopError,
    # Content errors
    ContentError,
    BodyUsedError,
    # Race errors
    TimeoutError,
    AbortError,
)
from .observability.metrics import (
    MetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
    format_snapshot,
)


__all__ = [
    # Primary entry points
    "FetchClient",
    "fetch",
    "get_default_client",
    "close_default_client",

    # Cancellation
    "AbortController",
    "AbortSignal",
    "settle_first",

    # Stores
    "CacheStore",
    "CacheEntry",
    "CookieJar",
    "origin_of",

    # Dispatch
    "Dispatcher",
    "TransportPath",
    "select_path",

    # Configuration and models
    "FetchSettings",
    "Timeouts",
    "FetchOptions",
    "ResolvedOptions",
    "RedirectMode",
    "CacheMode",
    "CredentialsMode",
    "BodyKind",
    "RequestBody",
    "Request",
    "RequestDescriptor",
    "Response",

    # Transports (for extending)
    "AcceleratedTransport",
    "FallbackTransport",
    "TransportResult",
    "HttpxAcceleratedTransport",
    "HttpxFallbackTransport",

    # Metrics and monitoring
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
    "format_snapshot",

    # Base exception
    "FetchError",
    # Validation errors
    "ValidationError",
    "InvalidURLError",
    "UnsupportedProtocolError",
    "InvalidRedirectModeError",
    "InvalidSettingsError",
    # Cache errors
    "CacheMissError",
    # Network errors
    "NetworkError",
    "ConnectionError",
    # Redirect errors
    "RedirectError",
    "TooManyRedirectsError",
    "RedirectLoopError",
    # Content errors
    "ContentError",
    "BodyUsedError",
    # Race errors
    "TimeoutError",
    "AbortError",
]
