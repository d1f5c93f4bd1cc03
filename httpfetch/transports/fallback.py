from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..abort import AbortSignal
from ..cookies import origin_of
from ..exceptions import RedirectError, RedirectLoopError, TooManyRedirectsError
from ..models.config import FetchSettings
from ..models.options import RedirectMode
from ..models.request import BodyKind, RequestBody
from ..models.response import Response, build_response
from ..observability.logging import FetchLoggerAdapter, get_fetch_logger, log_redirect
from .base import REDIRECT_STATUSES, FallbackTransport, build_async_client

# Headers that must not leak to another origin when a redirect crosses it.
_ORIGIN_BOUND_HEADERS = ("authorization", "cookie")


def encode_body(body: RequestBody) -> Dict[str, Any]:
    """Map a tagged body onto httpx request keyword arguments."""
    if body.kind is BodyKind.ABSENT:
        return {}
    if body.kind in (BodyKind.TEXT, BodyKind.BINARY):
        return {"content": body.value}
    if body.kind is BodyKind.URL_ENCODED:
        return {"data": body.value}
    if body.kind is BodyKind.MULTIPART:
        return {"data": body.value, "files": body.files}
    raise ValueError(f"unknown body kind: {body.kind!r}")


class HttpxFallbackTransport(FallbackTransport):
    """
    Fallback transport with full redirect-mode semantics.

    Redirects are walked by hand so ``manual`` can hand back the redirect
    response itself and ``error`` can refuse the first hop. Loops and chains
    longer than ``settings.max_redirects`` fail with a ``RedirectError``
    subclass. The abort signal is checked before every hop.
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
        self._client: Optional[httpx.AsyncClient] = None
        self._logger = logger or self.settings.logger or get_fetch_logger(__name__)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_async_client(
                self.settings, follow_redirects=False, transport=self._transport
            )
            self._logger.debug("client.initialized", path="fallback")
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._logger.debug("client.closed", path="fallback")

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
        client = self._ensure_client()
        request_kwargs = encode_body(body)
        headers = httpx.Headers(headers)

        redirect_chain: list[str] = []
        # A hop repeats only when both method and URL repeat (POST -> 303 -> GET to itself is fine)
        visited: set[tuple[str, str]] = {(method, url)}
        current_url = url

        while True:
            if signal is not None:
                signal.throw_if_aborted()

            resp = await client.request(method, current_url, headers=headers, **request_kwargs)

            if resp.status_code not in REDIRECT_STATUSES or redirect is RedirectMode.MANUAL:
                break

            location = resp.headers.get("Location")
            if not location:
                # Redirect without Location header, return as-is
                break

            next_url = str(httpx.URL(current_url).join(location))

            if redirect is RedirectMode.ERROR:
                raise RedirectError(
                    message=f"Redirect to {next_url} refused by redirect mode 'error'",
                    url=url,
                    redirect_chain=[next_url],
                )

            # 303, and 301/302 after POST, continue as a bodyless GET
            if resp.status_code == 303 or (resp.status_code in (301, 302) and method == "POST"):
                method = "GET"
                request_kwargs = {}
                headers.pop("content-type", None)

            if (method, next_url) in visited:
                self._logger.error(
                    "redirect.loop_detected",
                    from_url=current_url,
                    to_url=next_url,
                    method=method,
                    redirect_count=len(redirect_chain),
                )
                raise RedirectLoopError(
                    message="",
                    url=url,
                    loop_url=next_url,
                    redirect_chain=redirect_chain + [next_url],
                )

            redirect_chain.append(next_url)
            visited.add((method, next_url))

            if len(redirect_chain) > self.settings.max_redirects:
                self._logger.error(
                    "redirect.too_many",
                    redirect_count=len(redirect_chain),
                    max_redirects=self.settings.max_redirects,
                )
                raise TooManyRedirectsError(
                    message="",
                    url=url,
                    max_redirects=self.settings.max_redirects,
                    redirect_chain=redirect_chain,
                )

            log_redirect(
                self._logger,
                from_url=current_url,
                to_url=next_url,
                status_code=resp.status_code,
                redirect_count=len(redirect_chain),
            )

            if origin_of(next_url) != origin_of(current_url):
                for name in _ORIGIN_BOUND_HEADERS:
                    headers.pop(name, None)

            current_url = next_url

        return build_response(
            resp.status_code,
            resp.reason_phrase,
            resp.headers.multi_items(),
            resp.content,
            url=str(resp.url),
            redirected=bool(redirect_chain),
            type="basic",
        )
