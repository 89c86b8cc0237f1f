"""Runtime configuration for signals."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from anysignal.scheduling import AsyncioScheduler, ManualScheduler


SchedulerType = Literal["asyncio", "manual"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

ENV_PREFIX = "ANYSIGNAL_"
_TRUTHY = {"1", "true", "yes", "on"}


class SignalConfig(BaseModel):
    """Signal runtime configuration."""

    scheduler: SchedulerType = Field(default="asyncio", title="Scheduler")
    """Task queue used to defer handler execution."""

    report_unhandled: bool = Field(default=True, title="Report Unhandled Failures")
    """Whether failures nobody observes are reported."""

    unhandled_log_level: LogLevel = Field(
        default="ERROR",
        title="Unhandled Failure Log Level",
        examples=["WARNING", "ERROR"],
    )
    """Log level used when reporting unhandled failures."""

    log_failures: bool = Field(default=False, title="Log Failures")
    """Emit a debug record for every failure written to a signal."""

    on_unhandled: Callable[[Any, Exception], None] | None = Field(
        default=None,
        exclude=True,
        title="Unhandled Failure Hook",
    )
    """Called with (signal, failure) for every unhandled failure."""

    model_config = ConfigDict(
        use_attribute_docstrings=True,
        extra="forbid",
    )

    def get_scheduler(self) -> AsyncioScheduler | ManualScheduler:
        """Create the scheduler selected by this configuration."""
        match self.scheduler:
            case "asyncio":
                return AsyncioScheduler()
            case "manual":
                return ManualScheduler()

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> SignalConfig:
        """Build a configuration from ANYSIGNAL_* environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if scheduler := env.get(f"{ENV_PREFIX}SCHEDULER"):
            values["scheduler"] = scheduler.lower()
        if level := env.get(f"{ENV_PREFIX}UNHANDLED_LOG_LEVEL"):
            values["unhandled_log_level"] = level.upper()
        for key in ("report_unhandled", "log_failures"):
            raw = env.get(f"{ENV_PREFIX}{key.upper()}")
            if raw is not None:
                values[key] = raw.strip().lower() in _TRUTHY
        return cls.model_validate(values)


_config = SignalConfig.from_env()
_scheduler: AsyncioScheduler | ManualScheduler = _config.get_scheduler()


def get_config() -> SignalConfig:
    """Return the active configuration."""
    return _config


def set_config(config: SignalConfig) -> None:
    """Replace the active configuration (and its scheduler)."""
    global _config, _scheduler
    _config = config
    _scheduler = config.get_scheduler()


def get_scheduler() -> AsyncioScheduler | ManualScheduler:
    """Return the scheduler new signals should use."""
    return _scheduler


@contextmanager
def configured(**overrides: Any) -> Iterator[SignalConfig]:
    """Temporarily apply configuration overrides.

    Example:
        with configured(scheduler="manual") as config:
            ...
    """
    previous = _config
    values = previous.model_dump() | {"on_unhandled": previous.on_unhandled}
    config = SignalConfig.model_validate(values | overrides)
    set_config(config)
    try:
        yield config
    finally:
        set_config(previous)
