"""Deferred execution of signal handlers."""

from __future__ import annotations

import asyncio
from collections import deque
import logging
from typing import TYPE_CHECKING, Any, Protocol


if TYPE_CHECKING:
    from collections.abc import Callable


logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Runs callbacks on a later turn of the host task queue."""

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None: ...


class AsyncioScheduler:
    """Schedule callbacks with `loop.call_soon` on the running event loop."""

    __slots__ = ("_loop",)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(callback, *args)


class ManualScheduler:
    """Queue callbacks until `run_pending` is called.

    Useful to drive signals deterministically without an event loop.
    """

    __slots__ = ("_queue",)

    def __init__(self) -> None:
        self._queue: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.append((callback, args))

    def run_pending(self, limit: int | None = None) -> int:
        """Run queued callbacks, including ones queued while running.

        Args:
            limit: Maximum number of callbacks to run (None for all)

        Returns:
            Number of callbacks that were run
        """
        ran = 0
        while self._queue and (limit is None or ran < limit):
            callback, args = self._queue.popleft()
            try:
                callback(*args)
            except Exception:
                logger.exception("Error in scheduled callback %r", callback)
            ran += 1
        return ran

    @property
    def pending(self) -> int:
        return len(self._queue)
