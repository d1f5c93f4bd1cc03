"""
Per-call fetch options.

``FetchOptions`` is the loose bag a caller hands in (plain strings accepted);
``ResolvedOptions`` is the frozen, validated form every downstream component
reads. Defaults live here and nowhere else.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

import httpx

if TYPE_CHECKING:
    from ..abort import AbortSignal
    from .request import RequestBody


class RedirectMode(str, Enum):
    FOLLOW = "follow"
    MANUAL = "manual"
    ERROR = "error"


class CacheMode(str, Enum):
    DEFAULT = "default"
    NO_STORE = "no-store"
    RELOAD = "reload"
    NO_CACHE = "no-cache"
    FORCE_CACHE = "force-cache"
    ONLY_IF_CACHED = "only-if-cached"

    @property
    def reads_cache(self) -> bool:
        return self in (CacheMode.FORCE_CACHE, CacheMode.ONLY_IF_CACHED)

    @property
    def writes_cache(self) -> bool:
        return self in (CacheMode.FORCE_CACHE, CacheMode.RELOAD, CacheMode.NO_CACHE)


class CredentialsMode(str, Enum):
    OMIT = "omit"
    SAME_ORIGIN = "same-origin"
    INCLUDE = "include"

    @property
    def uses_cookie_jar(self) -> bool:
        return self is not CredentialsMode.OMIT


HeadersInput = Union[httpx.Headers, Mapping[str, str], list]


@dataclass
class FetchOptions:
    """Options accepted by ``FetchClient.fetch``. Every field is optional."""

    method: Optional[str] = None
    headers: Optional[HeadersInput] = None
    body: Optional[Any] = None              # str | bytes | Mapping | RequestBody
    redirect: Union[RedirectMode, str] = RedirectMode.FOLLOW
    cache: Optional[Union[CacheMode, str]] = None
    credentials: Union[CredentialsMode, str] = CredentialsMode.OMIT
    timeout: Optional[float] = None         # milliseconds
    signal: Optional["AbortSignal"] = None


@dataclass(frozen=True)
class ResolvedOptions:
    """Validated options. ``cache`` is None when no cache handling was requested."""

    method: Optional[str]
    headers: Optional[httpx.Headers]
    body: "RequestBody"
    redirect: RedirectMode
    cache: Optional[CacheMode]
    credentials: CredentialsMode
    timeout_ms: Optional[float]
    signal: Optional["AbortSignal"]

    @property
    def reads_cache(self) -> bool:
        return self.cache is not None and self.cache.reads_cache

    @property
    def writes_cache(self) -> bool:
        return self.cache is not None and self.cache.writes_cache

    @property
    def needs_race(self) -> bool:
        return self.signal is not None or self.timeout_ms is not None
