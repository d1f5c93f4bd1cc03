from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Optional

import httpx

from .cache import CacheStore
from .cookies import CookieJar
from .dispatch import Dispatcher, select_path
from .exceptions import CacheMissError
from .models.config import FetchSettings
from .models.metrics import RequestMetrics
from .models.options import CacheMode, FetchOptions
from .models.request import RequestDescriptor
from .models.response import Response
from .normalize import Resource, normalize_input
from .observability.logging import log_cache_event, get_fetch_logger
from .observability.metrics import MetricsCollector, get_metrics_collector
from .race import settle_first
from .resolver import resolve_options
from .transports.accelerated import HttpxAcceleratedTransport
from .transports.base import AcceleratedTransport, FallbackTransport
from .transports.fallback import HttpxFallbackTransport


class FetchClient:
    """
    Fetch-style HTTP facade.

    Responsibilities:
      - Normalize the call input and resolve options
      - Serve cache-reading modes from the cache store
      - Dispatch through the accelerated or fallback transport
      - Keep the per-origin cookie jar and the cache store up to date
      - Race the dispatch against the abort signal and the timeout

    The cache store and cookie jar are injected by reference, so several
    clients (or tests) can share or isolate them at will.

    Example:
        async with FetchClient() as client:
            response = await client.fetch("https://example.com/", cache="force-cache")
            print(response.status, await response.text())
    """

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        *,
        cache: Optional[CacheStore] = None,
        cookies: Optional[CookieJar] = None,
        accelerated: Optional[AcceleratedTransport] = None,
        fallback: Optional[FallbackTransport] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.settings = settings or FetchSettings()
        self._logger = self.settings.logger or get_fetch_logger(__name__)

        self.cache = cache if cache is not None else CacheStore()
        self.cookies = cookies if cookies is not None else CookieJar()

        self.accelerated = accelerated or HttpxAcceleratedTransport(
            self.settings, transport=transport, logger=self.settings.logger
        )
        self._owns_fallback = fallback is None
        self.fallback = fallback or HttpxFallbackTransport(
            self.settings, transport=transport, logger=self.settings.logger
        )

        if metrics is None and self.settings.collect_metrics:
            metrics = get_metrics_collector()
        self._metrics = metrics

        self._client_handle: Optional[Any] = None
        self._dispatcher: Optional[Dispatcher] = None

    @property
    def is_open(self) -> bool:
        return self._dispatcher is not None

    def open(self) -> "FetchClient":
        """Create the accelerated client handle. Called lazily by ``fetch``."""
        if self._dispatcher is None:
            self._client_handle = self.accelerated.create_client()
            self._dispatcher = Dispatcher(
                self.accelerated,
                self._client_handle,
                self.fallback,
                self.cache,
                self.cookies,
                logger=self.settings.logger,
            )
        return self

    async def aclose(self) -> None:
        if self._dispatcher is None:
            return
        await self.accelerated.close_client(self._client_handle)
        if self._owns_fallback:
            await self.fallback.aclose()
        self._client_handle = None
        self._dispatcher = None

    async def __aenter__(self) -> "FetchClient":
        return self.open()

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def fetch(
        self,
        resource: Resource,
        options: Optional[FetchOptions] = None,
        **kwargs: Any,
    ) -> Response:
        """
        Perform one fetch.

        Args:
            resource: URL string, ``httpx.URL`` or ``Request``
            options: ``FetchOptions``; keyword arguments override its fields
                     (method, headers, body, redirect, cache, credentials,
                     timeout in milliseconds, signal)

        Returns:
            Response with ``url``, ``redirected`` and ``type`` attached

        Raises:
            ValidationError: invalid URL, scheme, redirect/cache/credentials/timeout value
            AbortError: signal already aborted, or aborted before settlement
            CacheMissError: ``only-if-cached`` without a stored entry
            RedirectError: ``redirect="error"`` met a redirect, or a redirect loop/overflow
            ConnectionError: the target refused the connection (message ``ECONNREFUSED``)
            TimeoutError: the timeout elapsed before settlement
        """
        resolved = resolve_options(options, **kwargs)
        descriptor = await normalize_input(resource, resolved)
        dispatcher = self.open()._dispatcher

        start = time.perf_counter()
        self._logger.debug(
            "request.started",
            url=descriptor.url,
            method=descriptor.effective_method,
            cache=descriptor.cache.value if descriptor.cache else None,
            credentials=descriptor.credentials.value,
        )

        try:
            cached = self._from_cache(descriptor)
        except CacheMissError as exc:
            self._record(descriptor, start, transport="cache", error=exc)
            raise
        if cached is not None:
            self._record(descriptor, start, transport="cache", response=cached, cache_hit=True)
            return cached

        path = select_path(descriptor)
        try:
            pending = dispatcher.dispatch(descriptor)
            if resolved.needs_race:
                pending = settle_first(
                    pending,
                    signal=resolved.signal,
                    timeout_ms=resolved.timeout_ms,
                    url=descriptor.url,
                )
            response = await pending
        except Exception as exc:
            self._record(descriptor, start, transport=path.value, error=exc)
            raise

        self._record(descriptor, start, transport=path.value, response=response)
        return response

    def _from_cache(self, descriptor: RequestDescriptor) -> Optional[Response]:
        """Serve cache-reading modes. Raises CacheMissError for an empty only-if-cached slot."""
        if not descriptor.options.reads_cache:
            if descriptor.cache is not None:
                log_cache_event(self._logger, "bypass", descriptor.url, descriptor.cache.value)
            return None

        response = self.cache.lookup(descriptor.url)
        if response is None and descriptor.cache is CacheMode.ONLY_IF_CACHED:
            raise CacheMissError(message="", url=descriptor.url)
        return response

    def _record(
        self,
        descriptor: RequestDescriptor,
        start: float,
        *,
        transport: str,
        response: Optional[Response] = None,
        error: Optional[BaseException] = None,
        cache_hit: bool = False,
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000

        if error is None:
            self._logger.info(
                "request.completed",
                url=descriptor.url,
                method=descriptor.effective_method,
                status_code=response.status if response else None,
                transport=transport,
                cache_hit=cache_hit,
                duration_ms=round(duration_ms, 2),
            )
        else:
            self._logger.warning(
                "request.failed",
                url=descriptor.url,
                method=descriptor.effective_method,
                transport=transport,
                error_type=type(error).__name__,
                duration_ms=round(duration_ms, 2),
            )

        if self._metrics is None:
            return
        self._metrics.record_request(
            RequestMetrics(
                url=descriptor.url,
                method=descriptor.effective_method,
                status_code=response.status if response else None,
                duration_ms=duration_ms,
                timestamp=datetime.now(),
                error_type=type(error).__name__ if error else None,
                transport=transport,
                cache_hit=cache_hit,
                redirected=response.redirected if response else False,
            )
        )


# Process-wide stores and client used by the module-level ``fetch``.
_default_cache = CacheStore()
_default_cookies = CookieJar()
_default_client: Optional[FetchClient] = None


def get_default_client() -> FetchClient:
    """Return the process-wide client sharing the default cache and cookie jar."""
    global _default_client
    if _default_client is None:
        _default_client = FetchClient(cache=_default_cache, cookies=_default_cookies)
    return _default_client


async def close_default_client() -> None:
    """Close the process-wide client's transports (the stores are kept)."""
    global _default_client
    if _default_client is not None:
        await _default_client.aclose()
        _default_client = None


async def fetch(resource: Resource, options: Optional[FetchOptions] = None, **kwargs: Any) -> Response:
    """Fetch through the process-wide client. See ``FetchClient.fetch``."""
    return await get_default_client().fetch(resource, options, **kwargs)
