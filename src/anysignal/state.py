"""Observable state slot backing a signal."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable


class SignalState(IntEnum):
    """Lifecycle status of a signal. CLOSED is terminal."""

    NOT_RAISED = 0
    RAISED = 1
    FAILED = 2
    CLOSED = 3


type WriteObserver = Callable[[SignalState, Any], None]


class StateCell:
    """Status + payload slot that notifies observers on every write.

    Observers fire synchronously inside `write`, most recently registered
    first, and the new value is committed after the last one returned.
    """

    __slots__ = ("_observers", "payload", "status")

    def __init__(self) -> None:
        self.status = SignalState.NOT_RAISED
        self.payload: Any = None
        self._observers: list[WriteObserver] = []

    def observe(self, on_write: WriteObserver) -> Callable[[], None]:
        """Register an observer for subsequent writes (never retroactive).

        Returns:
            A callable removing the observer again
        """
        self._observers.append(on_write)

        def remove() -> None:
            if on_write in self._observers:
                self._observers.remove(on_write)

        return remove

    def write(self, status: SignalState, payload: Any = None) -> None:
        """Notify every observer, then commit.

        The value is committed even if an observer raises; the first such
        exception is re-raised afterwards.
        """
        error: Exception | None = None
        # Snapshot: observers registered during this write only see later ones.
        for observer in reversed(self._observers[:]):
            try:
                observer(status, payload)
            except Exception as exc:  # noqa: BLE001
                if error is None:
                    error = exc
        self.status = status
        self.payload = payload
        if error is not None:
            raise error

    def clear(self) -> None:
        """Drop all observers."""
        self._observers.clear()

    @property
    def observer_count(self) -> int:
        return len(self._observers)
