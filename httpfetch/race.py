"""
Abort/timeout race controller.

``settle_first`` lets the dispatch, the caller's abort signal and a single-shot
timer compete; whichever fires first settles the call. Settlement goes through
one ``asyncio.Future`` so it happens exactly once, and the timer handle, the
abort listener and the losing dispatch task are released by an ``ExitStack``
on every exit path.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Optional, TypeVar

from .abort import AbortSignal
from .exceptions import AbortError, TimeoutError as FetchTimeoutError
from .observability.logging import get_fetch_logger

T = TypeVar("T")

_logger = get_fetch_logger(__name__)


def _retrieve_outcome(task: asyncio.Future) -> None:
    # Mark a losing task's exception as retrieved.
    if not task.cancelled():
        task.exception()


def _release_dispatch(task: asyncio.Future) -> None:
    if not task.done():
        task.cancel()
    task.add_done_callback(_retrieve_outcome)


async def settle_first(
    awaitable: Awaitable[T],
    *,
    signal: Optional[AbortSignal] = None,
    timeout_ms: Optional[float] = None,
    url: Optional[str] = None,
) -> T:
    """
    Await ``awaitable`` unless the signal aborts or the timeout elapses first.

    With neither a signal nor a timeout the awaitable is awaited directly.

    Raises:
        AbortError: the signal fired before the dispatch settled
        TimeoutError: ``timeout_ms`` elapsed before the dispatch settled
    """
    if signal is None and timeout_ms is None:
        return await awaitable

    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()
    dispatch = asyncio.ensure_future(awaitable)

    def _on_abort() -> None:
        if outcome.done():
            return
        _logger.debug("race.aborted", url=url)
        outcome.set_exception(AbortError(message="", url=url, reason=signal.reason))

    def _on_timeout() -> None:
        if outcome.done():
            return
        _logger.debug("race.timed_out", url=url, timeout_ms=timeout_ms)
        outcome.set_exception(FetchTimeoutError(message="", url=url, timeout_ms=timeout_ms))

    def _on_dispatch_done(task: asyncio.Future) -> None:
        if outcome.done():
            return
        if task.cancelled():
            outcome.cancel()
            return
        exc = task.exception()
        if exc is not None:
            outcome.set_exception(exc)
        else:
            outcome.set_result(task.result())

    with contextlib.ExitStack() as scope:
        dispatch.add_done_callback(_on_dispatch_done)
        scope.callback(dispatch.remove_done_callback, _on_dispatch_done)

        if timeout_ms is not None:
            timer = loop.call_later(timeout_ms / 1000.0, _on_timeout)
            scope.callback(timer.cancel)

        if signal is not None:
            scope.callback(signal.remove_listener, _on_abort)
            signal.add_listener(_on_abort)

        scope.callback(_release_dispatch, dispatch)
        return await outcome
