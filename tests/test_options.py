"""
Tests for option resolution and input normalization.
"""

import httpx
import pytest

from httpfetch import AbortController, FetchOptions, Request, RequestBody
from httpfetch.exceptions import (
    AbortError,
    BodyUsedError,
    InvalidRedirectModeError,
    InvalidSettingsError,
    InvalidURLError,
    UnsupportedProtocolError,
)
from httpfetch.models.options import CacheMode, CredentialsMode, RedirectMode
from httpfetch.models.request import BodyKind
from httpfetch.normalize import normalize_input, parse_url
from httpfetch.resolver import resolve_options


class TestResolveOptions:
    """Defaults and validation of per-call options."""

    def test_defaults(self):
        resolved = resolve_options()

        assert resolved.method is None
        assert resolved.headers is None
        assert resolved.body.kind is BodyKind.ABSENT
        assert resolved.redirect is RedirectMode.FOLLOW
        assert resolved.cache is None
        assert resolved.credentials is CredentialsMode.OMIT
        assert resolved.timeout_ms is None
        assert resolved.needs_race is False

    def test_string_values_become_enums(self):
        resolved = resolve_options(redirect="manual", cache="no-store", credentials="include")

        assert resolved.redirect is RedirectMode.MANUAL
        assert resolved.cache is CacheMode.NO_STORE
        assert resolved.credentials is CredentialsMode.INCLUDE

    def test_method_is_uppercased(self):
        assert resolve_options(method="post").method == "POST"

    def test_keyword_overrides_apply_on_top_of_options(self):
        options = FetchOptions(method="PUT", cache="reload")
        resolved = resolve_options(options, cache="force-cache")

        assert resolved.method == "PUT"
        assert resolved.cache is CacheMode.FORCE_CACHE
        assert options.cache == "reload"

    def test_invalid_redirect(self):
        with pytest.raises(InvalidRedirectModeError) as exc_info:
            resolve_options(redirect="sideways")
        assert exc_info.value.message == "Invalid redirect option: sideways"

    def test_invalid_cache(self):
        with pytest.raises(InvalidSettingsError) as exc_info:
            resolve_options(cache="sometimes")
        assert exc_info.value.setting_name == "cache"

    def test_invalid_credentials(self):
        with pytest.raises(InvalidSettingsError):
            resolve_options(credentials="everyone")

    @pytest.mark.parametrize("timeout", [-1, "50", True])
    def test_invalid_timeout(self, timeout):
        with pytest.raises(InvalidSettingsError):
            resolve_options(timeout=timeout)

    def test_timeout_is_milliseconds(self):
        resolved = resolve_options(timeout=50)
        assert resolved.timeout_ms == 50.0
        assert resolved.needs_race is True

    def test_already_aborted_signal(self):
        controller = AbortController()
        controller.abort("gone")

        with pytest.raises(AbortError) as exc_info:
            resolve_options(signal=controller.signal)
        assert exc_info.value.reason == "gone"

    def test_body_is_tagged_once(self):
        assert resolve_options(body="x").body == RequestBody.text("x")
        assert resolve_options(body=b"\x00").body.kind is BodyKind.BINARY
        assert resolve_options(body={"a": "1"}).body.kind is BodyKind.URL_ENCODED

    def test_default_cache_mode_neither_reads_nor_writes(self):
        resolved = resolve_options(cache="default")
        assert resolved.reads_cache is False
        assert resolved.writes_cache is False

    @pytest.mark.parametrize(
        "mode, reads, writes",
        [
            ("force-cache", True, True),
            ("only-if-cached", True, False),
            ("reload", False, True),
            ("no-cache", False, True),
            ("no-store", False, False),
        ],
    )
    def test_cache_mode_capabilities(self, mode, reads, writes):
        resolved = resolve_options(cache=mode)
        assert resolved.reads_cache is reads
        assert resolved.writes_cache is writes


class TestParseUrl:
    """URL validation."""

    def test_accepts_http_and_https(self):
        assert parse_url("http://example.test/a").host == "example.test"
        assert parse_url("https://example.test/a").scheme == "https"

    def test_rejects_other_schemes(self):
        with pytest.raises(UnsupportedProtocolError) as exc_info:
            parse_url("ftp://example.test/file")
        assert exc_info.value.message == "unsupported protocol"

    def test_rejects_relative_urls(self):
        with pytest.raises(InvalidURLError):
            parse_url("/just/a/path")


class TestNormalizeInput:
    """Reduction of strings, URLs and Request objects to a descriptor."""

    @pytest.mark.asyncio
    async def test_string_url_is_kept_literally(self):
        descriptor = await normalize_input("http://example.test:8080/a?b=1", resolve_options())

        assert descriptor.url == "http://example.test:8080/a?b=1"
        assert descriptor.origin == "http://example.test:8080"
        assert descriptor.effective_method == "GET"

    @pytest.mark.asyncio
    async def test_httpx_url_is_accepted(self):
        descriptor = await normalize_input(httpx.URL("https://example.test/x"), resolve_options())
        assert descriptor.url == "https://example.test/x"

    @pytest.mark.asyncio
    async def test_unsupported_resource_type(self):
        with pytest.raises(InvalidURLError):
            await normalize_input(42, resolve_options())

    @pytest.mark.asyncio
    async def test_request_method_headers_and_body_adopted(self):
        request = Request(
            "http://example.test/submit",
            method="put",
            headers={"X-Trace": "abc"},
            body="hello",
        )

        descriptor = await normalize_input(request, resolve_options())

        assert descriptor.method == "PUT"
        assert descriptor.headers["x-trace"] == "abc"
        assert descriptor.body == RequestBody.text("hello")
        assert request.body_used is True

    @pytest.mark.asyncio
    async def test_options_override_request_fields(self):
        request = Request("http://example.test/", method="PUT", body="ignored")

        descriptor = await normalize_input(
            request, resolve_options(method="patch", body="winner")
        )

        assert descriptor.method == "PATCH"
        assert descriptor.body.value == "winner"
        assert request.body_used is False

    @pytest.mark.asyncio
    async def test_binary_request_body_is_kept_tagged(self):
        request = Request("http://example.test/", method="POST", body=b"\x01\x02")

        descriptor = await normalize_input(request, resolve_options())

        assert descriptor.body.kind is BodyKind.BINARY
        assert descriptor.body.value == b"\x01\x02"

    @pytest.mark.asyncio
    async def test_consumed_request_body_is_not_reread(self):
        request = Request("http://example.test/", method="POST", body="once")
        await request.text()

        descriptor = await normalize_input(request, resolve_options())

        assert descriptor.body.is_absent

    @pytest.mark.asyncio
    async def test_request_body_reads_once(self):
        request = Request("http://example.test/", method="POST", body="once")
        assert await request.text() == "once"
        with pytest.raises(BodyUsedError):
            await request.text()
