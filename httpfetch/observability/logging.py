"""
Logging adapter for the httpfetch facade.

This module provides dependency injection for structured logging while keeping
httpfetch decoupled from specific logging implementations.

Architecture:
- FetchLoggerAdapter wraps any LoggerAdapter and provides fetch-specific helpers
- _logger_factory allows consumers to inject their logger factory
- Default factory uses standard library logging when no custom factory is configured

Event names are dotted (``request.started``, ``cache.hit``, ``cookie.stored``)
and every extra field travels as keyword context.

Usage in httpfetch:
    from httpfetch.observability.logging import get_fetch_logger

    logger = get_fetch_logger(__name__, url="https://example.com/", host="example.com")
    logger.info("request.started")

Usage in consumer applications (configuring the factory):
    from httpfetch.observability.logging import configure_logging

    configure_logging(logger_factory=my_structured_logger_factory)
"""

from __future__ import annotations

import logging
import time
from logging import Logger, LoggerAdapter
from typing import Any, Callable, Dict, Optional


# Global logger factory (can be injected by embedding applications)
_logger_factory: Optional[Callable[..., LoggerAdapter]] = None


class FetchLoggerAdapter:
    """
    Thin wrapper around LoggerAdapter providing fetch-specific logging helpers.

    Keeps event naming and metadata structure consistent across the facade
    while allowing flexible backend implementations.
    """

    def __init__(self, logger: LoggerAdapter, context: Optional[Dict[str, Any]] = None):
        """
        Initialize the adapter.

        Args:
            logger: Underlying LoggerAdapter (from custom logger or stdlib)
            context: Additional context to bind to all log records
        """
        self._logger = logger
        self._context = context or {}

    def _merge_context(self, **extra: Any) -> Dict[str, Any]:
        """Merge bound context with extra fields."""
        return {**self._context, **extra}

    def bind(self, **extra: Any) -> "FetchLoggerAdapter":
        """Return a child adapter with additional bound context."""
        return FetchLoggerAdapter(self._logger, self._merge_context(**extra))

    def debug(self, event: str, **extra: Any) -> None:
        """Log DEBUG-level event."""
        self._logger.debug(event, extra=self._merge_context(**extra))

    def info(self, event: str, **extra: Any) -> None:
        """Log INFO-level event."""
        self._logger.info(event, extra=self._merge_context(**extra))

    def warning(self, event: str, **extra: Any) -> None:
        """Log WARNING-level event."""
        self._logger.warning(event, extra=self._merge_context(**extra))

    def error(self, event: str, exc_info: Optional[BaseException] = None, **extra: Any) -> None:
        """Log ERROR-level event."""
        self._logger.error(event, extra=self._merge_context(**extra), exc_info=exc_info)


def _default_logger_factory(name: str, **context: Any) -> LoggerAdapter:
    """
    Default logger factory using standard library logging.

    Returns a basic LoggerAdapter when no custom factory is configured.
    """
    base_logger: Logger = logging.getLogger(name)
    return logging.LoggerAdapter(base_logger, {"extra": context})


def configure_logging(logger_factory: Optional[Callable[..., LoggerAdapter]]) -> None:
    """
    Configure httpfetch to use a custom logger factory.

    Args:
        logger_factory: Callable that returns a LoggerAdapter, signature:
                       (name: str, **context) -> LoggerAdapter.
                       Pass None to restore the stdlib default.
    """
    global _logger_factory
    _logger_factory = logger_factory


def get_fetch_logger(
    name: str,
    url: Optional[str] = None,
    host: Optional[str] = None,
    method: Optional[str] = None,
    **extra_context: Any
) -> FetchLoggerAdapter:
    """
    Get an httpfetch logger with HTTP request context.

    Uses the configured logger factory if set, otherwise falls back to stdlib logging.

    Args:
        name: Logger name (typically __name__)
        url: Request URL
        host: Target host
        method: HTTP method (GET, POST, etc.)
        **extra_context: Additional context to bind

    Returns:
        FetchLoggerAdapter with bound context
    """
    context: Dict[str, Any] = {**extra_context}

    if url is not None:
        context["url"] = url
    if host is not None:
        context["host"] = host
    if method is not None:
        context["method"] = method

    factory = _logger_factory or _default_logger_factory
    base_logger = factory(name, **context)

    return FetchLoggerAdapter(base_logger, context)


def log_timing(
    logger: FetchLoggerAdapter,
    event_prefix: str,
    **context: Any
) -> "TimingContext":
    """
    Context manager for timing facade operations.

    Usage:
        with log_timing(logger, "dispatch", path="accelerated"):
            response = await transport.fetch(handle, url)
        # Logs dispatch.started and dispatch.completed (or dispatch.failed) with duration
    """
    return TimingContext(logger, event_prefix, context)


class TimingContext:
    """Context manager for timing and logging facade operations."""

    def __init__(self, logger: FetchLoggerAdapter, event_prefix: str, context: Dict[str, Any]):
        self.logger = logger
        self.event_prefix = event_prefix
        self.context = context
        self.start_time = 0.0
        self.duration_ms = 0.0

    def __enter__(self) -> "TimingContext":
        self.start_time = time.perf_counter()
        self.logger.debug(f"{self.event_prefix}.started", **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is None:
            self.logger.info(
                f"{self.event_prefix}.completed",
                duration_ms=round(self.duration_ms, 2),
                **self.context
            )
        else:
            self.logger.warning(
                f"{self.event_prefix}.failed",
                duration_ms=round(self.duration_ms, 2),
                error_type=exc_type.__name__,
                **self.context
            )


def log_exception(
    logger: FetchLoggerAdapter,
    exc: BaseException,
    event: str,
    **context: Any
) -> None:
    """
    Log an exception with fetch context.

    Usage:
        try:
            result = await transport.fetch(handle, url)
        except FetchError as exc:
            log_exception(logger, exc, "request.failed", method="GET")
            raise
    """
    error_context = {
        **context,
        "error_type": exc.__class__.__name__,
        "error_message": str(exc),
    }

    logger.error(event, exc_info=exc, **error_context)


def log_redirect(
    logger: FetchLoggerAdapter,
    from_url: str,
    to_url: str,
    status_code: int,
    redirect_count: int,
    **context: Any
) -> None:
    """
    Log an HTTP redirect hop.

    Args:
        logger: Logger instance
        from_url: URL that answered with a redirect
        to_url: Redirect target URL
        status_code: HTTP redirect status code (301, 302, 303, 307, 308)
        redirect_count: Number of redirects so far in chain
        **context: Additional context
    """
    logger.debug(
        "request.redirect",
        from_url=from_url,
        to_url=to_url,
        status_code=status_code,
        redirect_count=redirect_count,
        **context
    )


def log_cache_event(
    logger: FetchLoggerAdapter,
    outcome: str,
    key: str,
    cache_mode: Optional[str] = None,
    **context: Any
) -> None:
    """
    Log a cache store interaction.

    Args:
        logger: Logger instance
        outcome: "hit", "miss", "stored" or "bypass"
        key: Cache key (the request URL)
        cache_mode: Effective cache mode of the request
        **context: Additional context
    """
    logger.debug(
        f"cache.{outcome}",
        key=key,
        cache_mode=cache_mode,
        **context
    )
