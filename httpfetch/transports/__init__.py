from .base import (
    AcceleratedTransport,
    FallbackTransport,
    TransportResult,
    build_async_client,
)
from .accelerated import HttpxAcceleratedTransport
from .fallback import HttpxFallbackTransport

__all__ = [
    "AcceleratedTransport",
    "FallbackTransport",
    "TransportResult",
    "build_async_client",

    "HttpxAcceleratedTransport",
    "HttpxFallbackTransport",
]
