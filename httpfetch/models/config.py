from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..observability.logging import FetchLoggerAdapter

DEFAULT_UA = "httpfetch/0.1"
DEFAULT_MAX_REDIRECTS = 20

@dataclass
class Timeouts:
    connect: float = 5.0
    read: float = 60.0
    write: float = 10.0
    pool: float = 5.0

@dataclass
class FetchSettings:
    # HTTP basics
    user_agent: str = DEFAULT_UA
    accept: str = "*/*"
    accept_encoding: str = "gzip, deflate, br"  # br decoded by httpx when brotli is installed

    # HTTP behavior
    http2: bool = False  # requires the h2 package (httpx[http2])
    max_redirects: int = DEFAULT_MAX_REDIRECTS  # shared hop bound for both transport paths
    timeouts: Timeouts = field(default_factory=Timeouts)

    # Connection pooling
    max_connections: int = 100
    max_keepalive_connections: int = 20

    # Logging
    logger: Optional["FetchLoggerAdapter"] = None  # Optional custom logger instance

    # Metrics
    collect_metrics: bool = True  # record every settled call in the process-wide collector
