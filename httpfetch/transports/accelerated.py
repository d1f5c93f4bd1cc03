from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from ..cookies import origin_of
from ..exceptions import TooManyRedirectsError
from ..models.config import FetchSettings
from ..observability.logging import FetchLoggerAdapter, get_fetch_logger, log_redirect
from .base import AcceleratedTransport, TransportResult, build_async_client

# Request extension holding (origin, cookie header) of the first hop.
# httpx copies extensions onto every redirect request it builds.
_CREDENTIALS_EXTENSION = "httpfetch.credentials"


async def _carry_cookie(request: httpx.Request) -> None:
    """Restore the Cookie header httpx drops on same-origin redirect hops."""
    carried = request.extensions.get(_CREDENTIALS_EXTENSION)
    if carried is None:
        return
    origin, cookie = carried
    if "cookie" not in request.headers and origin_of(request.url) == origin:
        request.headers["cookie"] = cookie


class HttpxAcceleratedTransport(AcceleratedTransport):
    """
    Accelerated transport backed by a shared ``httpx.AsyncClient``.

    Redirects are followed by httpx itself, bounded by
    ``settings.max_redirects``. The client never stores cookies; the
    facade's jar is the only cookie state.

    Example:
        transport = HttpxAcceleratedTransport()
        client = transport.create_client()
        result = await transport.fetch(client, "https://example.com/")
        await transport.close_client(client)
    """

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[FetchLoggerAdapter] = None,
    ):
        self.settings = settings or FetchSettings()
        self._transport = transport
        self._logger = logger or self.settings.logger or get_fetch_logger(__name__)

    def create_client(self) -> httpx.AsyncClient:
        client = build_async_client(
            self.settings,
            follow_redirects=True,
            transport=self._transport,
            event_hooks={"request": [_carry_cookie]},
        )
        self._logger.debug(
            "client.initialized",
            path="accelerated",
            http2=self.settings.http2,
            max_redirects=self.settings.max_redirects,
        )
        return client

    async def fetch(
        self,
        client: httpx.AsyncClient,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> TransportResult:
        options = options or {}
        headers = options.get("headers")
        extensions = {}
        cookie = httpx.Headers(headers).get("cookie") if headers else None
        if cookie:
            extensions[_CREDENTIALS_EXTENSION] = (origin_of(url), cookie)
        try:
            response = await client.request(
                options.get("method", "GET"),
                url,
                headers=headers,
                content=options.get("body"),
                extensions=extensions,
            )
        except httpx.TooManyRedirects as exc:
            self._logger.error(
                "redirect.too_many",
                url=url,
                max_redirects=self.settings.max_redirects,
            )
            raise TooManyRedirectsError(
                message="",
                url=url,
                max_redirects=self.settings.max_redirects,
                cause=exc,
            ) from exc

        for count, hop in enumerate(response.history, start=1):
            next_url = hop.headers.get("Location", "")
            log_redirect(
                self._logger,
                from_url=str(hop.url),
                to_url=next_url,
                status_code=hop.status_code,
                redirect_count=count,
            )

        return TransportResult(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers.multi_items(),
            body=response.content,
            url=str(response.url),
            redirected=bool(response.history),
            type="basic",
        )

    async def close_client(self, client: httpx.AsyncClient) -> None:
        await client.aclose()
        self._logger.debug("client.closed", path="accelerated")
