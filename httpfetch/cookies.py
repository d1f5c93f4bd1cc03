"""
Per-origin cookie jar.

One ``name=value`` pair is kept per origin. Each ``Set-Cookie`` seen under a
credentialed request replaces the previous pair; attributes (Path, Expires,
HttpOnly...) are dropped. Lookups are keyed strictly by origin, so a request
to another origin simply finds nothing.
"""

from __future__ import annotations

from typing import Dict, Optional

import httpx

from .observability.logging import FetchLoggerAdapter, get_fetch_logger


def origin_of(url: str | httpx.URL) -> str:
    """Serialize the origin (scheme, host, non-default port) of ``url``."""
    parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
    host = parsed.host
    if ":" in host:
        host = f"[{host}]"
    origin = f"{parsed.scheme}://{host}"
    if parsed.port is not None:
        origin = f"{origin}:{parsed.port}"
    return origin


class CookieJar:
    """Process-lifetime ``origin -> cookie pair`` store. Last write wins."""

    def __init__(self, logger: Optional[FetchLoggerAdapter] = None) -> None:
        self._pairs: Dict[str, str] = {}
        self._logger = logger or get_fetch_logger(__name__)

    def get(self, origin: str) -> Optional[str]:
        return self._pairs.get(origin)

    def set(self, origin: str, pair: str) -> None:
        self._pairs[origin] = pair

    def store_from_header(self, origin: str, set_cookie: Optional[str]) -> Optional[str]:
        """
        Keep the token before the first ``;`` of a ``Set-Cookie`` value.

        Returns the stored pair, or None when the header is absent or has no
        usable pair (logged, never raised).
        """
        if not set_cookie:
            return None
        pair = set_cookie.split(";", 1)[0].strip()
        if not pair:
            self._logger.warning("cookie.parse_failed", origin=origin, header=set_cookie)
            return None
        self._pairs[origin] = pair
        self._logger.debug("cookie.stored", origin=origin, name=pair.partition("=")[0])
        return pair

    def inject(self, origin: str, headers: Optional[httpx.Headers]) -> Optional[httpx.Headers]:
        """Return a copy of ``headers`` carrying the origin's cookie, if any."""
        pair = self._pairs.get(origin)
        if pair is None:
            return headers
        merged = httpx.Headers(headers)
        merged["cookie"] = pair
        return merged

    def clear(self) -> None:
        self._pairs.clear()

    def __contains__(self, origin: object) -> bool:
        return origin in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)
