"""Core signal class: a repeatable, multicast, chainable future."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, NamedTuple

from anysignal import bridge
from anysignal.config import get_config, get_scheduler
from anysignal.errors import AggregateSignalError, SignalFailError, unwrap_failure
from anysignal.state import SignalState, StateCell


if TYPE_CHECKING:
    import asyncio
    from collections.abc import Awaitable, Callable, Generator

    from anysignal.combinators import Settlement
    from anysignal.scheduling import Scheduler


logger = logging.getLogger(__name__)

type Raiser = Callable[[Any], None]
type Thrower = Callable[[Any], None]
type Executor = Callable[[Raiser, Thrower], Any]
type OnRaised[T] = Callable[[SignalInfo[T]], Any]
type OnFailed = Callable[[Exception], Any]
type OnClose = Callable[[], Any]


class SignalInfo[T]:
    """A raised value plus its position in the signal's raise sequence."""

    __slots__ = ("_signal", "data", "signal_count")

    def __init__(self, data: T, signal_count: int, signal: Signal[T] | None = None) -> None:
        self.data = data
        self.signal_count = signal_count
        self._signal = signal

    def close_signal(self) -> None:
        """Permanently close the signal this value was raised on."""
        if self._signal is not None:
            self._signal._close()

    def __repr__(self) -> str:
        return f"SignalInfo(data={self.data!r}, signal_count={self.signal_count})"


class Raisers(NamedTuple):
    """A signal together with its raise and fail capabilities."""

    signal: Signal[Any]
    raiser: Raiser
    thrower: Thrower


def _noop(*_: Any) -> None:
    pass


def _pass_data(info: SignalInfo[Any]) -> Any:
    return info.data


def _reraise(error: Exception) -> Any:
    raise error


def _run_handler(
    handler: Callable[[Any], Any],
    payload: Any,
    raiser: Raiser,
    thrower: Thrower,
    scheduler: Scheduler,
) -> None:
    try:
        result = handler(payload)
    except Exception as exc:  # noqa: BLE001
        thrower(unwrap_failure(exc))
        return
    if inspect.isawaitable(result) and not isinstance(result, Signal):
        result = Signal.from_awaitable(result, scheduler=scheduler)
    raiser(result)


class Signal[T]:
    """Repeatable, multicast async notification channel.

    The executor runs synchronously and receives `raise_` and `fail`
    capabilities it may call any number of times, now or later. Every
    observer registered with `receive` gets every raise and failure, with its
    handlers running on a later loop turn.

    Example:
        signal = Signal(lambda raise_, fail: loop.call_later(1, raise_, "tick"))

        signal.receive(lambda info: print(info.data, info.signal_count))
    """

    __slots__ = (
        "__weakref__",
        "_cell",
        "_fail_count",
        "_observed",
        "_scheduler",
        "_signal_count",
        "_unsubscribe",
    )

    def __init__(self, executor: Executor, *, scheduler: Scheduler | None = None) -> None:
        if not callable(executor):
            msg = f"Signal executor must be callable, not {type(executor).__name__}"
            raise TypeError(msg)
        self._cell = StateCell()
        self._signal_count = 0
        self._fail_count = 0
        self._observed = False
        self._unsubscribe: Callable[[], None] | None = None
        self._scheduler = scheduler or get_scheduler()
        try:
            executor(self._raise, self._fail)
        except Exception as exc:  # noqa: BLE001
            self._fail(exc)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} status={self.status.name} "
            f"raised={self._signal_count} failed={self._fail_count}>"
        )

    @property
    def status(self) -> SignalState:
        return self._cell.status

    @property
    def scheduler(self) -> Scheduler:
        """Scheduler running this signal's handlers."""
        return self._scheduler

    @property
    def closed(self) -> bool:
        return self._cell.status is SignalState.CLOSED

    @property
    def signal_count(self) -> int:
        """Number of raises committed so far."""
        return self._signal_count

    @property
    def fail_count(self) -> int:
        """Number of (non-aggregate) failures written so far."""
        return self._fail_count

    # -- capabilities handed to executors --------------------------------

    def _raise(self, value: Any = None) -> None:
        if self.closed:
            return
        if isinstance(value, Signal):
            # Settle with the inner signal's outcome instead of the signal itself.
            value.receive(
                lambda info: self._raise(info.data),
                lambda error: self._fail(unwrap_failure(error)),
            )
            return
        self._signal_count += 1
        self._cell.write(SignalState.RAISED, SignalInfo(value, self._signal_count, self))

    def _fail(self, reason: Any = None) -> None:
        if self.closed:
            return
        if isinstance(reason, AggregateSignalError):
            failure: Exception = reason
        else:
            self._fail_count += 1
            failure = SignalFailError(reason, self._fail_count)
        config = get_config()
        if config.log_failures:
            logger.debug("%r failed with %r", self, reason)
        self._cell.write(SignalState.FAILED, failure)
        if config.report_unhandled and not self._observed:
            try:
                self._scheduler.schedule(self._report_if_unhandled, failure)
            except RuntimeError:
                logger.debug("No running event loop, skipping unhandled check for %r", self)

    def _close(self) -> None:
        if self.closed:
            return
        logger.debug("Closing %r", self)
        self._cell.write(SignalState.CLOSED, None)
        self._cell.clear()

    def _report_if_unhandled(self, failure: Exception) -> None:
        if self._observed or self.closed:
            return
        config = get_config()
        level = logging.getLevelNamesMapping()[config.unhandled_log_level]
        logger.log(level, "Unhandled signal failure: %r", unwrap_failure(failure), exc_info=failure)
        if config.on_unhandled is None:
            return
        try:
            config.on_unhandled(self, failure)
        except Exception:
            logger.exception("Error in unhandled failure hook")

    # -- chaining ---------------------------------------------------------

    def receive(
        self,
        on_raised: OnRaised[T] | None = None,
        on_failed: OnFailed | None = None,
        *,
        on_close: OnClose | None = None,
    ) -> Signal[Any]:
        """Register handlers and return the next signal in the chain.

        Args:
            on_raised: Called with the `SignalInfo` of every raise
                (default: pass `info.data` on)
            on_failed: Called with the failure of every fail
                (default: re-raise, failing the returned signal)
            on_close: Called once when this signal closes

        Returns:
            A new signal settled by each handler's return value. Handlers
            returning a signal or an awaitable settle it with that outcome.
        """
        for handler in (on_raised, on_failed, on_close):
            if handler is not None and not callable(handler):
                msg = f"Signal handler must be callable, not {type(handler).__name__}"
                raise TypeError(msg)
        handle_raised = on_raised or _pass_data
        handle_failed = on_failed or _reraise
        chained, raiser, thrower = Signal.with_raisers(scheduler=self._scheduler)

        def on_write(status: SignalState, payload: Any) -> None:
            match status:
                case SignalState.RAISED:
                    self._scheduler.schedule(
                        _run_handler, handle_raised, payload, raiser, thrower, self._scheduler
                    )
                case SignalState.FAILED:
                    self._scheduler.schedule(
                        _run_handler, handle_failed, payload, raiser, thrower, self._scheduler
                    )
                case SignalState.CLOSED:
                    self._scheduler.schedule(self._run_close, on_close, chained)

        self._observed = True
        if not self.closed:
            chained._unsubscribe = self._cell.observe(on_write)
        if self.status is not SignalState.NOT_RAISED:
            on_write(self.status, self._cell.payload)
        return chained

    def unsubscribe(self) -> None:
        """Stop receiving from the signal this one was chained from.

        Handler calls that are already scheduled still run.
        """
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _run_close(self, on_close: OnClose | None, chained: Signal[Any]) -> None:
        if on_close is not None:
            try:
                on_close()
            except Exception as exc:  # noqa: BLE001
                chained._fail(exc)
        self._scheduler.schedule(chained._close)

    def catch(self, on_failed: OnFailed) -> Signal[Any]:
        """Handle failures; raises pass through unchanged."""
        return self.receive(None, on_failed)

    def finally_(self, on_finally: OnClose) -> Signal[T]:
        """Run `on_finally` on every settlement and on close.

        Raised values and failures propagate unchanged.
        """

        def on_raised(info: SignalInfo[T]) -> T:
            on_finally()
            return info.data

        def on_failed(error: Exception) -> Any:
            on_finally()
            raise error

        return self.receive(on_raised, on_failed, on_close=on_finally)

    def all_over(self, on_close: OnClose) -> Signal[T]:
        """Run `on_close` once this signal is closed."""
        return self.receive(on_close=on_close)

    # -- bridging ---------------------------------------------------------

    def to_future(self) -> asyncio.Future[SignalInfo[T]]:
        """Return a future settled by the first raise or failure."""
        return bridge.to_future(self)

    def __await__(self) -> Generator[Any, None, T]:
        info = yield from self.to_future().__await__()
        return info.data

    # -- factories --------------------------------------------------------

    @classmethod
    def raised[V](cls, value: V, *, scheduler: Scheduler | None = None) -> Signal[V]:
        """Create a signal that has already raised `value`."""
        return cls(lambda raise_, _: raise_(value), scheduler=scheduler)

    @classmethod
    def failed(cls, reason: Any = None, *, scheduler: Scheduler | None = None) -> Signal[Any]:
        """Create a signal that has already failed with `reason`."""
        return cls(lambda _, fail: fail(reason), scheduler=scheduler)

    @classmethod
    def with_raisers(cls, *, scheduler: Scheduler | None = None) -> Raisers:
        """Create a signal and hand out its raise and fail capabilities."""
        signal = cls(_noop, scheduler=scheduler)
        return Raisers(signal, signal._raise, signal._fail)

    @classmethod
    def from_awaitable[V](
        cls, awaitable: Awaitable[V], *, scheduler: Scheduler | None = None
    ) -> Signal[V]:
        """Create a signal settled by the outcome of a coroutine or future."""
        return cls(
            lambda raise_, fail: bridge.settle_from(awaitable, raise_, fail),
            scheduler=scheduler,
        )

    # -- combinators ------------------------------------------------------

    @classmethod
    def all(cls, *signals: Signal[Any]) -> Signal[list[SignalInfo[Any]]]:
        """Raise with every input's info once all have raised; fail fast."""
        from anysignal import combinators

        return combinators.all_of(*signals, signal_cls=cls)

    @classmethod
    def any(cls, *signals: Signal[Any]) -> Signal[Any]:
        """Raise with the first success; fail once all inputs have failed."""
        from anysignal import combinators

        return combinators.any_of(*signals, signal_cls=cls)

    @classmethod
    def all_settled(cls, *signals: Signal[Any]) -> Signal[list[Settlement]]:
        """Raise with every input's outcome once all have settled."""
        from anysignal import combinators

        return combinators.all_settled(*signals, signal_cls=cls)

    @classmethod
    def race(cls, *signals: Signal[Any]) -> Signal[Any]:
        """Settle like whichever input settles first."""
        from anysignal import combinators

        return combinators.race(*signals, signal_cls=cls)

    @classmethod
    def attempt(
        cls, callback: Callable[[], Any], *, scheduler: Scheduler | None = None
    ) -> Signal[Any]:
        """Run `callback` now and turn its outcome into a signal."""
        from anysignal import combinators

        return combinators.attempt(callback, signal_cls=cls, scheduler=scheduler)
