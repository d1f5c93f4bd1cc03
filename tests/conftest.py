"""
Shared fixtures: an in-process counting server mounted through
``httpx.MockTransport`` and a ``FetchClient`` wired to it.
"""

from __future__ import annotations

import inspect
from collections import Counter
from typing import Awaitable, Callable, Union

import httpx
import pytest

from httpfetch import FetchClient, FetchSettings


Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class CountingServer:
    """Routes requests to per-path handlers and counts hits per path."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.hits: Counter = Counter()
        self.requests: list[httpx.Request] = []

    def route(self, path: str, handler: Handler) -> None:
        self.routes[path] = handler

    @property
    def total_hits(self) -> int:
        return sum(self.hits.values())

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.hits[request.url.path] += 1
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, text="not found")
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result


@pytest.fixture
def server():
    return CountingServer()


@pytest.fixture
def settings():
    return FetchSettings(collect_metrics=False)


@pytest.fixture
async def client(server, settings):
    """Yield a FetchClient whose transports both talk to ``server``."""
    async with FetchClient(settings, transport=httpx.MockTransport(server)) as fetch_client:
        yield fetch_client
