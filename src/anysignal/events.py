"""Event emitters and the signal adapter listening to them."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any

from anysignal.core import Signal


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable

    from anysignal.core import Raiser, Thrower
    from anysignal.scheduling import Scheduler


logger = logging.getLogger(__name__)

type Listener = Callable[[Any], Awaitable[Any] | Any]


class EventEmitter:
    """In-process event source with per-event-type listeners."""

    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: dict[Hashable, list[Listener]] = {}

    def on(self, event_type: Hashable, listener: Listener) -> Listener:
        """Register a listener for `event_type`."""
        self._listeners.setdefault(event_type, []).append(listener)
        return listener

    def off(self, event_type: Hashable, listener: Listener) -> None:
        """Remove a listener (no-op if it is not registered)."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event_type: Hashable) -> list[Listener]:
        return list(self._listeners.get(event_type, []))

    async def emit(self, event_type: Hashable, event: Any = None) -> None:
        """Emit an event, awaiting coroutine listeners sequentially."""
        for listener in self.listeners(event_type):
            result = listener(event)
            if inspect.isawaitable(result):
                await result

    def emit_bg(self, event_type: Hashable, event: Any = None) -> list[asyncio.Task[Any]]:
        """Emit an event, creating a task per coroutine listener (fire-and-forget)."""
        tasks: list[asyncio.Task[Any]] = []
        for listener in self.listeners(event_type):
            result = listener(event)
            if asyncio.iscoroutine(result):
                tasks.append(asyncio.create_task(result))
        return tasks


class EventSignal[T](Signal[T]):
    """Signal raised once per event fired on an emitter.

    Example:
        emitter = EventEmitter()
        clicks = EventSignal.listen_to(emitter, "click")
        clicks.receive(lambda info: print("clicked", info.data))

        await emitter.emit("click", {"x": 1})
    """

    __slots__ = ("_detach",)

    def __init__(
        self,
        executor: Callable[[Raiser, Thrower], Any],
        *,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._detach: Callable[[], None] | None = None
        super().__init__(executor, scheduler=scheduler)

    @classmethod
    def listen_to(
        cls,
        emitter: EventEmitter,
        event_type: Hashable,
        *,
        once: bool = False,
        scheduler: Scheduler | None = None,
    ) -> EventSignal[Any]:
        """Create a signal fed by `event_type` events of `emitter`.

        Args:
            emitter: Event source to listen on
            event_type: Event type to listen for
            once: Stop listening after the first event
            scheduler: Scheduler for the signal's handlers
        """
        signal, raiser, _ = cls.with_raisers(scheduler=scheduler)

        def listener(event: Any) -> None:
            if once:
                signal.detach()
            raiser(event)

        emitter.on(event_type, listener)
        signal._detach = lambda: emitter.off(event_type, listener)
        logger.debug("Listening for %r events on %r", event_type, emitter)
        return signal

    def detach(self) -> None:
        """Stop listening on the emitter."""
        if self._detach is not None:
            self._detach()
            self._detach = None

    def _close(self) -> None:
        self.detach()
        super()._close()
