"""
Tests for the per-origin cookie jar and credential modes.
"""

from unittest.mock import MagicMock

import httpx
import pytest

from httpfetch import CookieJar, origin_of

BASE = "http://example.test"
OTHER = "http://other.test"


def _set_cookie(request):
    return httpx.Response(200, headers={"Set-Cookie": "sid=abc123; Path=/; HttpOnly"})


def _echo_cookie(request):
    return httpx.Response(200, text=request.headers.get("cookie", ""))


class TestOriginOf:
    """Origin serialization."""

    @pytest.mark.parametrize(
        "url, origin",
        [
            ("http://example.test/a/b?c=d", "http://example.test"),
            ("https://example.test:8443/", "https://example.test:8443"),
            ("https://example.test:443/", "https://example.test"),
            ("http://[::1]:8080/x", "http://[::1]:8080"),
        ],
    )
    def test_origin_of(self, url, origin):
        assert origin_of(url) == origin

    def test_accepts_httpx_url(self):
        assert origin_of(httpx.URL("http://example.test/x")) == "http://example.test"


class TestCookieJar:
    """Direct CookieJar behaviour."""

    def test_store_keeps_first_pair_only(self):
        jar = CookieJar()

        pair = jar.store_from_header(BASE, "sid=abc; Path=/; Secure")

        assert pair == "sid=abc"
        assert jar.get(BASE) == "sid=abc"
        assert BASE in jar

    def test_last_write_wins(self):
        jar = CookieJar()
        jar.store_from_header(BASE, "a=1")
        jar.store_from_header(BASE, "b=2")

        assert jar.get(BASE) == "b=2"
        assert len(jar) == 1

    def test_absent_header_is_ignored(self):
        jar = CookieJar()
        assert jar.store_from_header(BASE, None) is None
        assert len(jar) == 0

    def test_unusable_header_is_logged_not_raised(self):
        logger = MagicMock()
        jar = CookieJar(logger=logger)

        assert jar.store_from_header(BASE, "; Path=/") is None

        assert BASE not in jar
        logger.warning.assert_called_once()
        assert logger.warning.call_args[0][0] == "cookie.parse_failed"

    def test_inject_returns_copy(self):
        jar = CookieJar()
        jar.set(BASE, "sid=1")
        original = httpx.Headers({"accept": "text/plain"})

        merged = jar.inject(BASE, original)

        assert merged["cookie"] == "sid=1"
        assert merged["accept"] == "text/plain"
        assert "cookie" not in original

    def test_inject_without_cookie_returns_headers_untouched(self):
        jar = CookieJar()
        assert jar.inject(BASE, None) is None

    def test_inject_without_headers(self):
        jar = CookieJar()
        jar.set(BASE, "sid=1")
        assert jar.inject(BASE, None)["cookie"] == "sid=1"

    def test_clear(self):
        jar = CookieJar()
        jar.set(BASE, "sid=1")
        jar.clear()
        assert jar.get(BASE) is None


class TestCredentialModes:
    """Cookie behaviour observed through FetchClient."""

    @pytest.fixture(autouse=True)
    def _routes(self, server):
        server.route("/login", _set_cookie)
        server.route("/whoami", _echo_cookie)

    @pytest.mark.asyncio
    async def test_include_replays_cookie_to_same_origin(self, client):
        await client.fetch(f"{BASE}/login", credentials="include")

        response = await client.fetch(f"{BASE}/whoami", credentials="include")

        assert await response.text() == "sid=abc123"

    @pytest.mark.asyncio
    async def test_cookie_not_sent_to_other_origin(self, client):
        await client.fetch(f"{BASE}/login", credentials="include")

        response = await client.fetch(f"{OTHER}/whoami", credentials="include")

        assert await response.text() == ""

    @pytest.mark.asyncio
    async def test_omit_neither_stores_nor_sends(self, client):
        await client.fetch(f"{BASE}/login")
        assert len(client.cookies) == 0

        client.cookies.set(BASE, "sid=preset")
        response = await client.fetch(f"{BASE}/whoami", credentials="omit")

        assert await response.text() == ""

    @pytest.mark.asyncio
    async def test_same_origin_uses_jar(self, client):
        await client.fetch(f"{BASE}/login", credentials="same-origin")

        response = await client.fetch(f"{BASE}/whoami", credentials="same-origin")

        assert await response.text() == "sid=abc123"

    @pytest.mark.asyncio
    async def test_cookie_sent_on_fallback_path(self, client, server):
        await client.fetch(f"{BASE}/login", credentials="include")

        await client.fetch(
            f"{BASE}/whoami", method="POST", body=b"\x00", credentials="include"
        )

        assert server.requests[-1].headers["cookie"] == "sid=abc123"

    @pytest.mark.asyncio
    async def test_transport_keeps_no_cookie_state(self, client, server):
        await client.fetch(f"{BASE}/login")
        await client.fetch(f"{BASE}/whoami")

        assert "cookie" not in server.requests[-1].headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("options", [{}, {"method": "POST", "body": b"x"}])
    async def test_cookie_follows_same_origin_redirect(self, client, server, options):
        server.route("/hop", lambda request: httpx.Response(302, headers={"Location": "/whoami"}))
        await client.fetch(f"{BASE}/login", credentials="include")

        response = await client.fetch(f"{BASE}/hop", credentials="include", **options)

        assert response.redirected is True
        assert await response.text() == "sid=abc123"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("options", [{}, {"method": "POST", "body": b"x"}])
    async def test_cookie_dropped_on_cross_origin_redirect(self, client, server, options):
        server.route(
            "/away", lambda request: httpx.Response(302, headers={"Location": f"{OTHER}/whoami"})
        )
        await client.fetch(f"{BASE}/login", credentials="include")

        response = await client.fetch(f"{BASE}/away", credentials="include", **options)

        assert response.url == f"{OTHER}/whoami"
        assert await response.text() == ""
