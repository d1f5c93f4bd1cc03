"""
Transport contracts shared by the accelerated and fallback paths, plus the
factory that builds their ``httpx.AsyncClient`` from ``FetchSettings``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from http.cookiejar import CookieJar as _StdCookieJar, DefaultCookiePolicy
from typing import Any, Callable, Mapping, Optional

import httpx

from ..abort import AbortSignal
from ..models.config import FetchSettings
from ..models.options import RedirectMode
from ..models.request import RequestBody
from ..models.response import Response

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass
class TransportResult:
    """What the accelerated transport hands back for one request."""

    status: int
    status_text: str
    headers: Any = field(default_factory=list)   # mapping or list of (name, value) pairs
    body: Optional[bytes | str] = None
    url: str = ""
    redirected: bool = False
    type: str = "basic"


class AcceleratedTransport(ABC):
    """
    Fast path: performs the real I/O for text/absent bodies.

    Always follows redirects up to its own hop bound and fails with a
    ``RedirectError`` subclass once the bound is exceeded.
    """

    @abstractmethod
    def create_client(self) -> Any:
        """Create the client handle passed to every ``fetch`` call."""
        pass

    @abstractmethod
    async def fetch(
        self,
        client: Any,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> TransportResult:
        """
        Perform one request.

        ``options`` is None when the caller supplied no method, headers or
        body; otherwise it holds only the supplied keys and ``body`` is a str.
        """
        pass

    async def close_client(self, client: Any) -> None:
        """Release the client handle."""
        pass


class FallbackTransport(ABC):
    """
    Full-featured path: owns body encoding for every body kind and the
    complete follow/manual/error redirect semantics.
    """

    @abstractmethod
    async def __call__(
        self,
        url: str,
        *,
        method: str,
        headers: Optional[httpx.Headers],
        body: RequestBody,
        redirect: RedirectMode,
        signal: Optional[AbortSignal] = None,
    ) -> Response:
        pass

    async def aclose(self) -> None:
        pass


class _RejectAllCookiesPolicy(DefaultCookiePolicy):
    # Cookie state belongs to the facade's jar, never to the httpx client.

    def set_ok(self, cookie, request) -> bool:
        return False

    def return_ok(self, cookie, request) -> bool:
        return False


def build_async_client(
    settings: FetchSettings,
    *,
    follow_redirects: bool,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    event_hooks: Optional[Mapping[str, list[Callable[..., Any]]]] = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` configured from ``settings``."""
    return httpx.AsyncClient(
        headers={
            "User-Agent": settings.user_agent,
            "Accept": settings.accept,
            "Accept-Encoding": settings.accept_encoding,
        },
        timeout=httpx.Timeout(
            connect=settings.timeouts.connect,
            read=settings.timeouts.read,
            write=settings.timeouts.write,
            pool=settings.timeouts.pool,
        ),
        http2=settings.http2,
        limits=httpx.Limits(
            max_keepalive_connections=settings.max_keepalive_connections,
            max_connections=settings.max_connections,
            keepalive_expiry=settings.timeouts.pool,
        ),
        follow_redirects=follow_redirects,
        max_redirects=settings.max_redirects,
        cookies=_StdCookieJar(policy=_RejectAllCookiesPolicy()),
        transport=transport,
        event_hooks=event_hooks,
    )
