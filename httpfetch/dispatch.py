"""
Transport dispatcher.

Chooses between the accelerated and the fallback transport for one request,
invokes it, maps transport failures onto facade errors and, once a response
is in hand, updates the cookie jar and the cache store.

Path selection:
    FALLBACK     body is binary, url-encoded or multipart, or redirect != follow
    ACCELERATED  everything else (absent or text body with redirect=follow)
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from .cache import CacheStore
from .cookies import CookieJar
from .exceptions import AbortError, ConnectionError as FetchConnectionError, FetchError, RedirectError
from .models.options import RedirectMode
from .models.request import BodyKind, RequestDescriptor
from .models.response import Response, build_response
from .observability.logging import FetchLoggerAdapter, get_fetch_logger, log_exception, log_timing
from .transports.base import AcceleratedTransport, FallbackTransport

# Messages transports use for a refused connection (reqwest, asyncio, anyio/httpcore).
CONNECTION_REFUSED_PATTERN = re.compile(
    r"error sending request|connection refused|connect call failed|all connection attempts failed",
    re.IGNORECASE,
)


class TransportPath(str, Enum):
    ACCELERATED = "accelerated"
    FALLBACK = "fallback"


def select_path(descriptor: RequestDescriptor) -> TransportPath:
    if descriptor.body.requires_fallback or descriptor.redirect is not RedirectMode.FOLLOW:
        return TransportPath.FALLBACK
    return TransportPath.ACCELERATED


def build_accelerated_options(descriptor: RequestDescriptor) -> Optional[Dict[str, Any]]:
    """
    Minimal options for the accelerated transport.

    Only fields the caller actually supplied are present; None when there
    are none. The body is always a str at this boundary.
    """
    options: Dict[str, Any] = {}
    if descriptor.method:
        options["method"] = descriptor.method
    if descriptor.headers is not None:
        options["headers"] = dict(descriptor.headers.items())
    if descriptor.body.kind is BodyKind.TEXT:
        options["body"] = descriptor.body.value
    return options or None


def relabel_connection_refused(exc: BaseException, url: str) -> Optional[FetchConnectionError]:
    """
    Return an ``ECONNREFUSED`` error carrying ``exc``'s traceback when ``exc``
    reports a refused connection, otherwise None.
    """
    if not CONNECTION_REFUSED_PATTERN.search(str(exc)):
        return None
    parsed = httpx.URL(url)
    relabelled = FetchConnectionError(
        message="",
        url=url,
        host=parsed.host,
        port=parsed.port,
        cause=exc,
    )
    return relabelled.with_traceback(exc.__traceback__)


class Dispatcher:
    """
    Runs one request through the selected transport plus cookie and cache bookkeeping.

    The cache store and cookie jar are shared by reference; the dispatcher
    holds no per-request state.
    """

    def __init__(
        self,
        accelerated: AcceleratedTransport,
        client_handle: Any,
        fallback: FallbackTransport,
        cache: CacheStore,
        cookies: CookieJar,
        logger: Optional[FetchLoggerAdapter] = None,
    ):
        self.accelerated = accelerated
        self.client_handle = client_handle
        self.fallback = fallback
        self.cache = cache
        self.cookies = cookies
        self._logger = logger or get_fetch_logger(__name__)

    async def dispatch(self, descriptor: RequestDescriptor) -> Response:
        if descriptor.credentials.uses_cookie_jar:
            descriptor = descriptor.with_headers(
                self.cookies.inject(descriptor.origin, descriptor.headers)
            )

        path = select_path(descriptor)
        logger = self._logger.bind(url=descriptor.url, method=descriptor.effective_method)
        logger.debug(
            "dispatch.path_selected",
            path=path.value,
            body_kind=descriptor.body.kind.value,
            redirect=descriptor.redirect.value,
        )

        with log_timing(logger, "dispatch", path=path.value):
            if path is TransportPath.FALLBACK:
                response = await self._dispatch_fallback(descriptor, logger)
            else:
                response = await self._dispatch_accelerated(descriptor, logger)

        await self._record(descriptor, response)
        return response

    async def _dispatch_fallback(self, descriptor: RequestDescriptor, logger: FetchLoggerAdapter) -> Response:
        try:
            return await self.fallback(
                descriptor.url,
                method=descriptor.effective_method,
                headers=descriptor.headers,
                body=descriptor.body,
                redirect=descriptor.redirect,
                signal=descriptor.options.signal,
            )
        except AbortError:
            raise
        except Exception as exc:
            if descriptor.redirect is RedirectMode.ERROR:
                log_exception(logger, exc, "request.redirect_refused")
                raise RedirectError(message="", url=descriptor.url, cause=exc) from exc
            relabelled = relabel_connection_refused(exc, descriptor.url)
            if relabelled is not None:
                logger.warning("transport.connection_refused", path="fallback")
                raise relabelled from exc
            raise

    async def _dispatch_accelerated(self, descriptor: RequestDescriptor, logger: FetchLoggerAdapter) -> Response:
        options = build_accelerated_options(descriptor)
        try:
            result = await self.accelerated.fetch(self.client_handle, descriptor.url, options)
        except FetchError:
            raise
        except Exception as exc:
            relabelled = relabel_connection_refused(exc, descriptor.url)
            if relabelled is not None:
                logger.warning("transport.connection_refused", path="accelerated")
                raise relabelled from exc
            raise

        return build_response(
            result.status,
            result.status_text,
            result.headers,
            result.body,
            url=result.url or descriptor.url,
            redirected=result.redirected,
            type=result.type,
        )

    async def _record(self, descriptor: RequestDescriptor, response: Response) -> None:
        if descriptor.credentials.uses_cookie_jar:
            self.cookies.store_from_header(descriptor.origin, response.headers.get("set-cookie"))
        if descriptor.options.writes_cache:
            await self.cache.store(descriptor.url, response)
