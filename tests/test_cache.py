"""
Tests for the in-memory response cache and the cache modes seen through fetch.
"""

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from httpfetch import CacheEntry, CacheStore, FetchClient, FetchSettings
from httpfetch.exceptions import CacheMissError
from httpfetch.models.response import build_response

BASE = "http://example.test"


def _response(body=b"payload", status=200, headers=None):
    return build_response(
        status,
        "OK",
        headers or [("content-type", "text/plain")],
        body,
        url=f"{BASE}/r",
        redirected=False,
    )


class TestCacheStore:
    """Direct CacheStore behaviour."""

    @pytest.mark.asyncio
    async def test_store_does_not_consume_response(self):
        store = CacheStore()
        response = _response()

        assert await store.store("k", response) is True

        assert response.body_used is False
        assert await response.text() == "payload"
        assert "k" in store
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_lookup_rebuilds_independent_responses(self):
        store = CacheStore()
        await store.store("k", _response(headers=[("x-a", "1"), ("x-a", "2")]))

        first = store.lookup("k")
        second = store.lookup("k")

        assert await first.text() == "payload"
        assert await second.text() == "payload"
        assert first.headers.get_list("x-a") == ["1", "2"]

    @pytest.mark.asyncio
    async def test_cached_response_identity(self):
        store = CacheStore()
        await store.store("k", _response())

        cached = store.lookup("k")

        assert cached.url == ""
        assert cached.redirected is False
        assert cached.type == "default"

    def test_lookup_miss(self):
        assert CacheStore().lookup("absent") is None

    @pytest.mark.asyncio
    async def test_store_of_used_response_fails_quietly(self):
        logger = MagicMock()
        store = CacheStore(logger=logger)
        response = _response()
        await response.bytes()

        assert await store.store("k", response) is False

        assert "k" not in store
        logger.warning.assert_called_once()
        assert logger.warning.call_args[0][0] == "cache.store_failed"

    @pytest.mark.asyncio
    async def test_last_write_wins(self):
        store = CacheStore()
        await store.store("k", _response(b"one"))
        await store.store("k", _response(b"two"))

        assert await store.lookup("k").text() == "two"

    def test_put_get_delete_clear(self):
        store = CacheStore()
        entry = CacheEntry(status=200, status_text="OK", headers=(), body=b"x")

        store.put("a", entry)
        store.put("b", entry)
        assert store.get("a") is entry
        assert sorted(store.keys()) == ["a", "b"]

        store.delete("a")
        store.delete("missing")
        assert "a" not in store

        store.clear()
        assert len(store) == 0


class TestCacheModes:
    """Cache modes as observed through FetchClient against a counting server."""

    @pytest.fixture(autouse=True)
    def _route(self, server):
        server.route("/cached", lambda request: httpx.Response(200, text=f"hit {server.hits['/cached']}"))

    @pytest.mark.asyncio
    async def test_force_cache_serves_second_call_from_store(self, client, server):
        first = await client.fetch(f"{BASE}/cached", cache="force-cache")
        second = await client.fetch(f"{BASE}/cached", cache="force-cache")

        assert server.hits["/cached"] == 1
        assert second.status == first.status == 200
        assert second.status_text == first.status_text == "OK"
        assert await first.text() == "hit 1"
        assert await second.text() == "hit 1"

    @pytest.mark.asyncio
    async def test_no_store_always_dispatches(self, client, server):
        await client.fetch(f"{BASE}/cached", cache="no-store")
        assert server.hits["/cached"] == 1

        await client.fetch(f"{BASE}/cached", cache="no-store")
        assert server.hits["/cached"] == 2
        assert f"{BASE}/cached" not in client.cache

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", ["reload", "no-cache"])
    async def test_write_through_modes_dispatch_and_store(self, client, server, mode):
        await client.fetch(f"{BASE}/cached", cache="force-cache")
        assert server.hits["/cached"] == 1

        refreshed = await client.fetch(f"{BASE}/cached", cache=mode)

        assert server.hits["/cached"] == 2
        assert await refreshed.text() == "hit 2"

        cached = await client.fetch(f"{BASE}/cached", cache="force-cache")
        assert server.hits["/cached"] == 2
        assert await cached.text() == "hit 2"

    @pytest.mark.asyncio
    async def test_only_if_cached_miss_never_dispatches(self, client, server):
        with pytest.raises(CacheMissError) as exc_info:
            await client.fetch(f"{BASE}/cached", cache="only-if-cached")

        assert exc_info.value.message == "cache miss"
        assert server.total_hits == 0

    @pytest.mark.asyncio
    async def test_only_if_cached_after_force_cache_population(self, client, server):
        await client.fetch(f"{BASE}/cached", cache="force-cache")

        cached = await client.fetch(f"{BASE}/cached", cache="only-if-cached")

        assert server.hits["/cached"] == 1
        assert cached.status == 200
        assert await cached.text() == "hit 1"

    @pytest.mark.asyncio
    async def test_concurrent_force_cache_misses_each_dispatch(self, client, server):
        async def slow(request):
            await asyncio.sleep(0.01)
            return httpx.Response(200, text=f"slow {server.hits['/slow']}")

        server.route("/slow", slow)

        responses = await asyncio.gather(
            *(client.fetch(f"{BASE}/slow", cache="force-cache") for _ in range(3))
        )

        assert server.hits["/slow"] == 3
        assert all(response.status == 200 for response in responses)
        assert f"{BASE}/slow" in client.cache

    @pytest.mark.asyncio
    async def test_unset_cache_mode_neither_reads_nor_writes(self, client, server):
        await client.fetch(f"{BASE}/cached")
        await client.fetch(f"{BASE}/cached", cache="default")

        assert server.hits["/cached"] == 2
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_cache_is_shared_between_clients(self, server):
        shared = CacheStore()
        settings = FetchSettings(collect_metrics=False)
        transport = httpx.MockTransport(server)

        async with FetchClient(settings, cache=shared, transport=transport) as writer:
            await writer.fetch(f"{BASE}/cached", cache="force-cache")
        async with FetchClient(settings, cache=shared, transport=transport) as reader:
            response = await reader.fetch(f"{BASE}/cached", cache="only-if-cached")

        assert server.hits["/cached"] == 1
        assert await response.text() == "hit 1"

    @pytest.mark.asyncio
    async def test_error_statuses_are_cached_too(self, client, server):
        server.route("/broken", lambda request: httpx.Response(500, text="boom"))

        await client.fetch(f"{BASE}/broken", cache="force-cache")
        cached = await client.fetch(f"{BASE}/broken", cache="force-cache")

        assert server.hits["/broken"] == 1
        assert cached.status == 500
