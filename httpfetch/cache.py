"""
In-memory response cache.

The cache has a deliberately narrow scope: remember the last response seen for
a URL so it can be replayed under the cache-reading modes. There is no
freshness logic, no Vary handling and no eviction; the cache mode chosen by
the caller decides whether an entry is read, written or ignored.

Entries are keyed by the literal request URL string, so two methods against
the same URL share one slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .models.response import Response, build_response
from .observability.logging import FetchLoggerAdapter, get_fetch_logger, log_cache_event


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of a response: status line, ordered headers and body bytes."""

    status: int
    status_text: str
    headers: Tuple[Tuple[str, str], ...]
    body: bytes

    def to_response(self) -> Response:
        """Rebuild a fresh response. Each call yields an independent body."""
        return build_response(
            self.status,
            self.status_text,
            list(self.headers),
            self.body,
            url="",
            redirected=False,
            type="default",
        )


class CacheStore:
    """
    Process-lifetime response store.

    Concurrent writers to the same key follow last-write-wins; no locking and
    no request coalescing is performed.
    """

    def __init__(self, logger: Optional[FetchLoggerAdapter] = None) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._logger = logger or get_fetch_logger(__name__)

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def lookup(self, key: str) -> Optional[Response]:
        """Return a response rebuilt from the stored entry, or None on a miss."""
        entry = self._entries.get(key)
        if entry is None:
            log_cache_event(self._logger, "miss", key)
            return None
        log_cache_event(self._logger, "hit", key, status=entry.status)
        return entry.to_response()

    def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    async def store(self, key: str, response: Response) -> bool:
        """
        Snapshot ``response`` under ``key``.

        Best effort: the response handed in is never consumed, and any failure
        while snapshotting is logged and reported as ``False``.
        """
        try:
            snapshot = response.clone()
            body = await snapshot.bytes()
            entry = CacheEntry(
                status=response.status,
                status_text=response.status_text,
                headers=tuple(response.headers.multi_items()),
                body=body,
            )
        except Exception as exc:
            self._logger.warning(
                "cache.store_failed",
                key=key,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return False

        self._entries[key] = entry
        log_cache_event(self._logger, "stored", key, status=entry.status, size_bytes=len(body))
        return True

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
