"""Fan-in combinators over signals.

Everything here goes through the public signal API (`receive` plus the
raise/fail capabilities handed to executors).

    from anysignal import Signal

    both = Signal.all(user_loaded, settings_loaded)
    first = Signal.race(primary, fallback)
"""

from __future__ import annotations

from dataclasses import dataclass
import inspect
from typing import TYPE_CHECKING, Any, Literal

from anysignal.core import Signal, SignalInfo
from anysignal.errors import AggregateSignalError, unwrap_failure


if TYPE_CHECKING:
    from collections.abc import Callable

    from anysignal.scheduling import Scheduler


@dataclass(frozen=True, slots=True)
class Settlement:
    """Outcome of one input of `all_settled`."""

    status: Literal["raised", "failed"]
    data: Any = None
    reason: Any = None


def _scheduler_for(
    signals: tuple[Signal[Any], ...], scheduler: Scheduler | None
) -> Scheduler | None:
    if scheduler is None and signals:
        return signals[0].scheduler
    return scheduler


def _unsubscribe_all(subscriptions: list[Signal[Any]]) -> None:
    for subscription in subscriptions:
        subscription.unsubscribe()
    subscriptions.clear()


def all_of(
    *signals: Signal[Any],
    signal_cls: type[Signal[Any]] = Signal,
    scheduler: Scheduler | None = None,
) -> Signal[list[SignalInfo[Any]]]:
    """Raise once every input has raised at least once.

    The result holds each input's latest `SignalInfo`, in input order. The
    first failure of any input fails the result and everything after it is
    ignored.
    """

    def executor(raise_: Callable[[Any], None], fail: Callable[[Any], None]) -> None:
        if not signals:
            raise_([])
            return
        results: dict[int, SignalInfo[Any]] = {}
        subscriptions: list[Signal[Any]] = []
        settled = False

        def on_raised(index: int, info: SignalInfo[Any]) -> None:
            nonlocal settled
            if settled:
                return
            results[index] = info
            if len(results) == len(signals):
                settled = True
                _unsubscribe_all(subscriptions)
                raise_([results[i] for i in range(len(signals))])

        def on_failed(error: Exception) -> None:
            nonlocal settled
            if settled:
                return
            settled = True
            _unsubscribe_all(subscriptions)
            fail(unwrap_failure(error))

        for index, signal in enumerate(signals):
            subscriptions.append(
                signal.receive(lambda info, i=index: on_raised(i, info), on_failed)
            )

    return signal_cls(executor, scheduler=_scheduler_for(signals, scheduler))


def any_of(
    *signals: Signal[Any],
    signal_cls: type[Signal[Any]] = Signal,
    scheduler: Scheduler | None = None,
) -> Signal[Any]:
    """Raise with the data of the first input that raises.

    Fails with an `AggregateSignalError` holding every cause (in completion
    order) once all inputs have failed.
    """

    def executor(raise_: Callable[[Any], None], fail: Callable[[Any], None]) -> None:
        if not signals:
            fail(AggregateSignalError([]))
            return
        errors: dict[int, Any] = {}
        subscriptions: list[Signal[Any]] = []
        settled = False

        def on_raised(info: SignalInfo[Any]) -> None:
            nonlocal settled
            if settled:
                return
            settled = True
            _unsubscribe_all(subscriptions)
            raise_(info.data)

        def on_failed(index: int, error: Exception) -> None:
            nonlocal settled
            if settled or index in errors:
                return
            errors[index] = unwrap_failure(error)
            if len(errors) == len(signals):
                settled = True
                _unsubscribe_all(subscriptions)
                fail(AggregateSignalError(list(errors.values())))

        for index, signal in enumerate(signals):
            subscriptions.append(
                signal.receive(on_raised, lambda error, i=index: on_failed(i, error))
            )

    return signal_cls(executor, scheduler=_scheduler_for(signals, scheduler))


def all_settled(
    *signals: Signal[Any],
    signal_cls: type[Signal[Any]] = Signal,
    scheduler: Scheduler | None = None,
) -> Signal[list[Settlement]]:
    """Raise once every input has raised or failed. Never fails."""

    def executor(raise_: Callable[[Any], None], _: Callable[[Any], None]) -> None:
        if not signals:
            raise_([])
            return
        outcomes: dict[int, Settlement] = {}
        subscriptions: list[Signal[Any]] = []
        settled = False

        def record(index: int, outcome: Settlement) -> None:
            nonlocal settled
            if settled or index in outcomes:
                return
            outcomes[index] = outcome
            if len(outcomes) == len(signals):
                settled = True
                _unsubscribe_all(subscriptions)
                raise_([outcomes[i] for i in range(len(signals))])

        for index, signal in enumerate(signals):
            subscriptions.append(
                signal.receive(
                    lambda info, i=index: record(i, Settlement("raised", data=info.data)),
                    lambda error, i=index: record(
                        i, Settlement("failed", reason=unwrap_failure(error))
                    ),
                )
            )

    return signal_cls(executor, scheduler=_scheduler_for(signals, scheduler))


def race(
    *signals: Signal[Any],
    signal_cls: type[Signal[Any]] = Signal,
    scheduler: Scheduler | None = None,
) -> Signal[Any]:
    """Settle with whichever input raises or fails first."""

    def executor(raise_: Callable[[Any], None], fail: Callable[[Any], None]) -> None:
        subscriptions: list[Signal[Any]] = []
        settled = False

        def on_raised(info: SignalInfo[Any]) -> None:
            nonlocal settled
            if not settled:
                settled = True
                _unsubscribe_all(subscriptions)
                raise_(info.data)

        def on_failed(error: Exception) -> None:
            nonlocal settled
            if not settled:
                settled = True
                _unsubscribe_all(subscriptions)
                fail(unwrap_failure(error))

        for signal in signals:
            subscriptions.append(signal.receive(on_raised, on_failed))

    return signal_cls(executor, scheduler=_scheduler_for(signals, scheduler))


def attempt(
    callback: Callable[[], Any],
    signal_cls: type[Signal[Any]] = Signal,
    scheduler: Scheduler | None = None,
) -> Signal[Any]:
    """Run `callback` synchronously and wrap its outcome in a signal.

    Exceptions fail the signal, returned signals and awaitables are
    followed, anything else is raised.
    """

    def executor(raise_: Callable[[Any], None], fail: Callable[[Any], None]) -> None:
        try:
            result = callback()
        except Exception as exc:  # noqa: BLE001
            fail(exc)
            return
        if isinstance(result, Signal):
            result.receive(lambda info: raise_(info.data), lambda e: fail(unwrap_failure(e)))
        elif inspect.isawaitable(result):
            raise_(signal_cls.from_awaitable(result, scheduler=scheduler))
        else:
            raise_(result)

    return signal_cls(executor, scheduler=scheduler)
