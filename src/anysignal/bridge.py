"""Adapters between signals and asyncio futures."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from anysignal.core import Signal, SignalInfo


logger = logging.getLogger(__name__)

# Strong references to tasks driving `settle_from` until they finish.
_pending: set[asyncio.Future[Any]] = set()


def to_future[T](signal: Signal[T]) -> asyncio.Future[SignalInfo[T]]:
    """Bridge the first raise or failure of a signal into a future.

    Later raises are ignored and the signal stops being observed once the
    future is done. The future is cancelled if the signal closes before it
    settled.
    """
    future: asyncio.Future[SignalInfo[T]] = asyncio.get_running_loop().create_future()

    def on_raised(info: SignalInfo[T]) -> None:
        if not future.done():
            future.set_result(info)

    def on_failed(error: Exception) -> None:
        if not future.done():
            future.set_exception(error)

    def on_close() -> None:
        if not future.done():
            future.cancel()

    subscription = signal.receive(on_raised, on_failed, on_close=on_close)
    future.add_done_callback(lambda _: subscription.unsubscribe())
    return future


def settle_from(
    awaitable: Awaitable[Any],
    raiser: Callable[[Any], None],
    thrower: Callable[[Any], None],
) -> asyncio.Future[Any]:
    """Run an awaitable as a task and forward its outcome.

    Args:
        awaitable: Coroutine, task or future to drive
        raiser: Called with the result on success
        thrower: Called with the exception on failure or cancellation

    Returns:
        The future wrapping the awaitable
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise
    future = asyncio.ensure_future(awaitable, loop=loop)
    _pending.add(future)

    def on_done(done: asyncio.Future[Any]) -> None:
        _pending.discard(done)
        if done.cancelled():
            logger.debug("Awaitable %r was cancelled", done)
            thrower(asyncio.CancelledError())
            return
        if (exc := done.exception()) is not None:
            thrower(exc)
        else:
            raiser(done.result())

    future.add_done_callback(on_done)
    return future
