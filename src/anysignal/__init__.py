"""AnySignal: repeatable, multicast, chainable async signals.

Example:
    signal = Signal(lambda raise_, fail: loop.call_later(1, raise_, "tick"))

    signal.receive(lambda info: info.data.upper()).receive(
        lambda info: print(info.data)
    )
"""

__version__ = "0.1.0"

from anysignal.combinators import Settlement
from anysignal.config import SignalConfig, configured, get_config, set_config
from anysignal.core import Raisers, Signal, SignalInfo
from anysignal.errors import AggregateSignalError, SignalFailError
from anysignal.events import EventEmitter, EventSignal
from anysignal.scheduling import AsyncioScheduler, ManualScheduler, Scheduler
from anysignal.state import SignalState

__all__ = [
    # Core
    "Raisers",
    "Settlement",
    "Signal",
    "SignalInfo",
    "SignalState",
    # Errors
    "AggregateSignalError",
    "SignalFailError",
    # Events
    "EventEmitter",
    "EventSignal",
    # Scheduling
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    # Config
    "SignalConfig",
    "configured",
    "get_config",
    "set_config",
]
