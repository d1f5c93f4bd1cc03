
from .logging import FetchLoggerAdapter, get_fetch_logger, configure_logging, log_cache_event
from .metrics import MetricsCollector, get_metrics_collector, reset_metrics_collector, format_snapshot

__all__ = [
    "FetchLoggerAdapter",
    "get_fetch_logger",
    "configure_logging",
    "log_cache_event",
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
    "format_snapshot",
]
