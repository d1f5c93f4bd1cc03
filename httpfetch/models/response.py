"""
The standard response object handed back to callers, and the builder that
produces it from either transport path or from a cache snapshot.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import httpx

from ..exceptions import BodyUsedError

# Statuses that never carry a body, whatever the transport returned.
NULL_BODY_STATUSES = frozenset({204, 205, 304})

_DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ResponseIdentity:
    """Provenance of a response: final URL, whether redirects happened, response type."""

    url: str
    redirected: bool
    type: str


class Response:
    """
    A fetch-style response.

    ``url``, ``redirected`` and ``type`` are identity fields attached once by
    the response builder. They are read-only and live outside the
    header/body surface, so cloning or re-wrapping keeps redirect provenance
    intact. The body can be consumed once; use ``clone()`` to read it twice.
    """

    __slots__ = ("status", "status_text", "headers", "_body", "_body_used", "_identity")

    def __init__(
        self,
        body: Optional[bytes | str] = None,
        *,
        status: int = 200,
        status_text: str = "",
        headers: Optional[Any] = None,
    ) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.status = status
        self.status_text = status_text
        self.headers = httpx.Headers(headers)
        self._body: Optional[bytes] = bytes(body) if body is not None else None
        self._body_used = False
        self._identity: Optional[ResponseIdentity] = None

    def _attach_identity(self, url: str, redirected: bool, type: str) -> None:
        if self._identity is not None:
            raise AttributeError("response identity fields are read-only")
        self._identity = ResponseIdentity(url=url, redirected=bool(redirected), type=type)

    @property
    def url(self) -> str:
        return self._identity.url if self._identity else ""

    @property
    def redirected(self) -> bool:
        return self._identity.redirected if self._identity else False

    @property
    def type(self) -> str:
        return self._identity.type if self._identity else "default"

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def body_used(self) -> bool:
        return self._body_used

    def _consume(self) -> bytes:
        if self._body_used:
            raise BodyUsedError(message="", url=self.url or None)
        self._body_used = True
        return self._body or b""

    async def bytes(self) -> bytes:
        return self._consume()

    async def text(self) -> str:
        return self._consume().decode("utf-8", errors="replace")

    async def json(self) -> Any:
        return json.loads(await self.text())

    async def aiter_bytes(self, chunk_size: int = _DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        data = self._consume()
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]

    def clone(self) -> "Response":
        if self._body_used:
            raise BodyUsedError(message="", url=self.url or None)
        copy = Response(self._body, status=self.status, status_text=self.status_text, headers=self.headers)
        copy._identity = self._identity
        return copy

    def __repr__(self) -> str:
        return f"<Response [{self.status} {self.status_text}]>"


def build_response(
    status: int,
    status_text: str,
    headers: Any,
    body: Optional[bytes | str],
    *,
    url: str,
    redirected: bool,
    type: str = "basic",
) -> Response:
    """Construct a ``Response`` and attach its identity fields."""
    if status in NULL_BODY_STATUSES:
        body = None
    response = Response(body, status=status, status_text=status_text, headers=headers)
    response._attach_identity(url, redirected, type)
    return response
