"""
Request-side models: the body tagged union, the request-like ``Request``
object callers may pass instead of a URL, and the canonical
``RequestDescriptor`` produced by the input normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

import httpx

from ..exceptions import BodyUsedError, ContentError
from .options import CacheMode, CredentialsMode, RedirectMode, ResolvedOptions


class BodyKind(str, Enum):
    ABSENT = "absent"
    TEXT = "text"
    BINARY = "binary"
    URL_ENCODED = "url-encoded"
    MULTIPART = "multipart"


# Body kinds only the fallback transport knows how to encode.
FALLBACK_BODY_KINDS = frozenset({BodyKind.BINARY, BodyKind.URL_ENCODED, BodyKind.MULTIPART})


@dataclass(frozen=True)
class RequestBody:
    """
    A request body tagged with its kind.

    ``value`` is a ``str`` for TEXT, ``bytes`` for BINARY and a field mapping
    for URL_ENCODED / MULTIPART. ``files`` is only used by MULTIPART and is
    handed to the transport unchanged (httpx ``files=`` shapes).
    """

    kind: BodyKind = BodyKind.ABSENT
    value: Any = None
    files: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    @classmethod
    def absent(cls) -> "RequestBody":
        return cls(BodyKind.ABSENT)

    @classmethod
    def text(cls, value: str) -> "RequestBody":
        return cls(BodyKind.TEXT, value)

    @classmethod
    def binary(cls, value: bytes) -> "RequestBody":
        return cls(BodyKind.BINARY, bytes(value))

    @classmethod
    def url_encoded(cls, fields: Mapping[str, Any]) -> "RequestBody":
        return cls(BodyKind.URL_ENCODED, dict(fields))

    @classmethod
    def multipart(
        cls,
        fields: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> "RequestBody":
        return cls(BodyKind.MULTIPART, dict(fields or {}), dict(files or {}))

    @classmethod
    def coerce(cls, value: Any) -> "RequestBody":
        """Tag an arbitrary caller-supplied body exactly once."""
        if value is None:
            return cls.absent()
        if isinstance(value, RequestBody):
            return value
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.binary(bytes(value))
        if isinstance(value, Mapping):
            return cls.url_encoded(value)
        return cls.text(str(value))

    @property
    def is_absent(self) -> bool:
        return self.kind is BodyKind.ABSENT

    @property
    def is_textual(self) -> bool:
        return self.kind in (BodyKind.ABSENT, BodyKind.TEXT)

    @property
    def requires_fallback(self) -> bool:
        return self.kind in FALLBACK_BODY_KINDS


class Request:
    """
    A request-like object that can be passed to ``fetch`` instead of a URL.

    Its method and headers are adopted unless the call's options override
    them, and an unread body is materialized when the options carry none.
    """

    def __init__(
        self,
        url: str | httpx.URL,
        *,
        method: str = "GET",
        headers: Optional[Any] = None,
        body: Any = None,
    ) -> None:
        self.url = str(url)
        self.method = method.upper()
        self.headers = httpx.Headers(headers)
        self.body = RequestBody.coerce(body)
        self._body_used = False

    @property
    def body_used(self) -> bool:
        return self._body_used

    async def text(self) -> str:
        """Read the body as a string. A body can only be read once."""
        if self._body_used:
            raise BodyUsedError(message="", url=self.url)
        self._body_used = True
        if self.body.kind is BodyKind.ABSENT:
            return ""
        if self.body.kind is BodyKind.TEXT:
            return self.body.value
        if self.body.kind is BodyKind.BINARY:
            return self.body.value.decode("utf-8", errors="replace")
        raise ContentError(
            message=f"{self.body.kind.value} body cannot be read as text",
            url=self.url,
        )

    def clone(self) -> "Request":
        if self._body_used:
            raise BodyUsedError(message="", url=self.url)
        return Request(self.url, method=self.method, headers=self.headers, body=self.body)

    def __repr__(self) -> str:
        return f"<Request [{self.method} {self.url}]>"


@dataclass(frozen=True)
class RequestDescriptor:
    """Canonical form of one fetch call, after normalization and option resolution."""

    url: str
    origin: str
    method: Optional[str]
    headers: Optional[httpx.Headers]
    body: RequestBody
    options: ResolvedOptions

    @property
    def redirect(self) -> RedirectMode:
        return self.options.redirect

    @property
    def cache(self) -> Optional[CacheMode]:
        return self.options.cache

    @property
    def credentials(self) -> CredentialsMode:
        return self.options.credentials

    @property
    def effective_method(self) -> str:
        return self.method or "GET"

    def with_headers(self, headers: httpx.Headers) -> "RequestDescriptor":
        return replace(self, headers=headers)
