"""
Exception hierarchy for the httpfetch facade.

Every failure the facade can surface to a caller is a ``FetchError`` carrying
the request URL, the causal exception and free-form context, so callers can
pattern-match on type while logs keep the full picture.

Exception Hierarchy:
    FetchError (base)
    ├── ValidationError
    │   ├── InvalidURLError
    │   ├── UnsupportedProtocolError
    │   ├── InvalidRedirectModeError
    │   └── InvalidSettingsError
    ├── CacheMissError
    ├── NetworkError
    │   └── ConnectionError
    ├── RedirectError
    │   ├── TooManyRedirectsError
    │   └── RedirectLoopError
    ├── ContentError
    │   └── BodyUsedError
    ├── TimeoutError
    └── AbortError

The ``message`` attribute holds the stable contract string ("cache miss",
"redirect error", "ECONNREFUSED", ...). For those errors ``str(exc)`` is the
message alone; the remaining errors append the URL and any context after a
``|`` separator.

Usage:
    from httpfetch.exceptions import CacheMissError, TimeoutError as FetchTimeoutError

    try:
        response = await client.fetch(url, cache="only-if-cached")
    except CacheMissError:
        response = await client.fetch(url, cache="force-cache")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional

__all__ = [
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

ECONNREFUSED = "ECONNREFUSED"
REDIRECT_ERROR = "redirect error"
CACHE_MISS = "cache miss"
UNSUPPORTED_PROTOCOL = "unsupported protocol"
ABORTED = "The operation was aborted"


# ============================================================================
# Base Exception
# ============================================================================


@dataclass(slots=True)
class FetchError(Exception):
    """
    Base exception for all facade failures.

    Provides rich context including URL and causal exception chain.
    """

    message: str
    url: Optional[str] = None
    cause: Optional[BaseException] = None
    context: Dict[str, Any] = field(default_factory=dict)

    # str(exc) is the bare message
    bare_str: ClassVar[bool] = False

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def __str__(self) -> str:
        if self.bare_str:
            return self.message
        parts = [self.message]
        if self.url:
            parts.append(f"url={self.url}")
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"context=({ctx_str})")
        return " | ".join(parts)


# ============================================================================
# Validation Errors
# ============================================================================


@dataclass(slots=True)
class ValidationError(FetchError):
    """Base class for input validation failures. Raised before any dispatch."""
    pass


@dataclass(slots=True)
class InvalidURLError(ValidationError):
    """Raised when the request URL does not parse as an absolute URL."""

    bare_str: ClassVar[bool] = True

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Invalid URL: {self.url}"
        FetchError.__post_init__(self)


@dataclass(slots=True)
class UnsupportedProtocolError(ValidationError):
    """Raised when the URL scheme is anything other than http or https."""

    bare_str: ClassVar[bool] = True

    scheme: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = UNSUPPORTED_PROTOCOL
        FetchError.__post_init__(self)


@dataclass(slots=True)
class InvalidRedirectModeError(ValidationError):
    """Raised when the redirect option is not follow, manual or error."""

    bare_str: ClassVar[bool] = True

    value: Optional[Any] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Invalid redirect option: {self.value}"
        FetchError.__post_init__(self)


@dataclass(slots=True)
class InvalidSettingsError(ValidationError):
    """Raised when a per-call option or client setting holds an invalid value."""

    setting_name: Optional[str] = None
    setting_value: Optional[Any] = None

    def __post_init__(self) -> None:
        if not self.message and self.setting_name:
            self.message = f"Invalid {self.setting_name} option: {self.setting_value}"
        FetchError.__post_init__(self)


# ============================================================================
# Cache Errors
# ============================================================================


@dataclass(slots=True)
class CacheMissError(FetchError):
    """Raised under ``only-if-cached`` when no entry exists. No network attempt is made."""

    bare_str: ClassVar[bool] = True

    def __post_init__(self) -> None:
        if not self.message:
            self.message = CACHE_MISS
        FetchError.__post_init__(self)


# ============================================================================
# Network Errors
# ============================================================================


@dataclass(slots=True)
class NetworkError(FetchError):
    """Base class for transport-level failures."""
    pass


@dataclass(slots=True)
class ConnectionError(NetworkError):
    """
    Raised when the target refused the connection.

    The message is always ``ECONNREFUSED`` so callers can match on a stable
    string regardless of which transport produced the failure.
    """

    bare_str: ClassVar[bool] = True

    host: Optional[str] = None
    port: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ECONNREFUSED
        FetchError.__post_init__(self)


# ============================================================================
# Redirect Errors
# ============================================================================


@dataclass(slots=True)
class RedirectError(FetchError):
    """
    Raised when a redirect violates the redirect policy.

    With ``redirect="error"`` the facade always surfaces this with the message
    ``redirect error``, whichever transport detected the redirect.
    """

    bare_str: ClassVar[bool] = True

    redirect_chain: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = REDIRECT_ERROR
        FetchError.__post_init__(self)


@dataclass(slots=True)
class TooManyRedirectsError(RedirectError):
    """Raised when a redirect chain exceeds the configured hop bound."""

    bare_str: ClassVar[bool] = False

    max_redirects: int = 0

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Too many redirects: exceeded limit of {self.max_redirects}"
        FetchError.__post_init__(self)


@dataclass(slots=True)
class RedirectLoopError(RedirectError):
    """Raised when a redirect chain revisits a URL."""

    bare_str: ClassVar[bool] = False

    loop_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Redirect loop detected at URL: {self.loop_url}"
        FetchError.__post_init__(self)


# ============================================================================
# Content Errors
# ============================================================================


@dataclass(slots=True)
class ContentError(FetchError):
    """Base class for body handling failures."""
    pass


@dataclass(slots=True)
class BodyUsedError(ContentError):
    """Raised when a body that was already read is read or cloned again."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = "Body has already been consumed"
        FetchError.__post_init__(self)


# ============================================================================
# Race Errors
# ============================================================================


@dataclass(slots=True)
class TimeoutError(FetchError):
    """Raised when the per-call timeout elapses before the dispatch settles."""

    bare_str: ClassVar[bool] = True

    timeout_ms: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Request timed out after {_format_ms(self.timeout_ms)} ms"
        FetchError.__post_init__(self)


@dataclass(slots=True)
class AbortError(FetchError):
    """Raised when the caller's abort signal fires before the dispatch settles."""

    bare_str: ClassVar[bool] = True

    reason: Optional[Any] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ABORTED
        FetchError.__post_init__(self)


def _format_ms(value: Optional[float]) -> str:
    # 50.0 -> "50", 12.5 -> "12.5"
    if value is None:
        return "?"
    if float(value).is_integer():
        return str(int(value))
    return str(value)
