from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass
class RequestMetrics:
    """
    One settled fetch call.

    A call fails only when it raised; an HTTP error status still resolves
    and counts as a success.
    """

    url: str
    method: str
    transport: str   # "accelerated" | "fallback" | "cache"
    duration_ms: float
    status_code: Optional[int] = None
    error_type: Optional[str] = None
    cache_hit: bool = False
    redirected: bool = False
    timestamp: Optional[datetime] = None

    @property
    def failed(self) -> bool:
        return self.error_type is not None


@dataclass
class MetricsSnapshot:
    """Point-in-time view of a MetricsCollector."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    success_rate: float = 0.0
    avg_duration_ms: float = 0.0
    min_duration_ms: Optional[float] = None
    max_duration_ms: Optional[float] = None
    p50_duration_ms: Optional[float] = None
    p95_duration_ms: Optional[float] = None
    p99_duration_ms: Optional[float] = None
    status_codes: Dict[int, int] = field(default_factory=dict)
    error_types: Dict[str, int] = field(default_factory=dict)
    requests_per_transport: Dict[str, int] = field(default_factory=dict)
    cache_hits: int = 0
    redirected_requests: int = 0
    requests_per_host: Dict[str, int] = field(default_factory=dict)
