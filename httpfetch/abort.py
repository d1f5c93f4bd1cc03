"""
Cooperative cancellation tokens.

An ``AbortController`` owns an ``AbortSignal``; the signal is handed to
``fetch`` and to transports. Aborting fires every registered listener once,
synchronously, on the calling thread.

Example:
    controller = AbortController()
    task = asyncio.create_task(client.fetch(url, signal=controller.signal))
    controller.abort()
    await task  # raises AbortError
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

from .exceptions import AbortError
from .observability.logging import get_fetch_logger

Listener = Callable[[], None]


class AbortSignal:
    """Read side of a cancellation token."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Optional[Any] = None
        self._listeners: List[Listener] = []
        self._logger = get_fetch_logger(__name__)

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[Any]:
        return self._reason

    def add_listener(self, listener: Listener) -> None:
        """Register a one-shot listener. Fires immediately if already aborted."""
        if self._aborted:
            listener()
            return
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def throw_if_aborted(self) -> None:
        if self._aborted:
            raise AbortError(message="", reason=self._reason)

    async def wait(self) -> None:
        """Suspend until the signal is aborted."""
        if self._aborted:
            return
        event = asyncio.Event()
        self.add_listener(event.set)
        try:
            await event.wait()
        finally:
            self.remove_listener(event.set)

    def _abort(self, reason: Optional[Any]) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        self._logger.debug("abort.signalled", listener_count=len(listeners))
        for listener in listeners:
            listener()


class AbortController:
    """Write side of a cancellation token."""

    def __init__(self) -> None:
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    def abort(self, reason: Optional[Any] = None) -> None:
        """Abort the signal. Calling it again is a no-op."""
        self._signal._abort(reason)
