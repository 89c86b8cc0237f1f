"""Tests for signal configuration."""

from __future__ import annotations

from unittest.mock import Mock

from pydantic import ValidationError
import pytest

from anysignal import (
    AsyncioScheduler,
    ManualScheduler,
    Signal,
    SignalConfig,
    configured,
    get_config,
)
from anysignal.config import get_scheduler


def test_defaults():
    """Test the default configuration values."""
    config = SignalConfig()

    assert config.scheduler == "asyncio"
    assert config.report_unhandled is True
    assert config.unhandled_log_level == "ERROR"
    assert config.log_failures is False
    assert config.on_unhandled is None
    assert isinstance(config.get_scheduler(), AsyncioScheduler)


def test_from_env():
    """Test reading the configuration from environment variables."""
    config = SignalConfig.from_env({
        "ANYSIGNAL_SCHEDULER": "Manual",
        "ANYSIGNAL_REPORT_UNHANDLED": "false",
        "ANYSIGNAL_UNHANDLED_LOG_LEVEL": "warning",
        "ANYSIGNAL_LOG_FAILURES": "1",
    })

    assert config.scheduler == "manual"
    assert config.report_unhandled is False
    assert config.unhandled_log_level == "WARNING"
    assert config.log_failures is True
    assert isinstance(config.get_scheduler(), ManualScheduler)


def test_from_env_ignores_unrelated_variables():
    """Test that unrelated variables leave the defaults alone."""
    assert SignalConfig.from_env({"PATH": "/usr/bin"}) == SignalConfig()


def test_invalid_values_rejected():
    """Test that invalid and unknown options are rejected."""
    with pytest.raises(ValidationError):
        SignalConfig(scheduler="threads")  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        SignalConfig(unknown_option=True)  # type: ignore[call-arg]


def test_configured_restores_previous():
    """Test that configured restores the previous config and scheduler."""
    previous = get_config()
    hook = Mock()

    with configured(scheduler="manual", on_unhandled=hook) as config:
        assert get_config() is config
        assert config.on_unhandled is hook
        assert isinstance(get_scheduler(), ManualScheduler)

    assert get_config() is previous
    assert isinstance(get_scheduler(), AsyncioScheduler)


def test_manual_scheduler_config_drives_signals():
    """Test that the configured manual scheduler drives new signals."""
    with configured(scheduler="manual"):
        scheduler = get_scheduler()
        received: list[int] = []
        Signal.raised(1).receive(lambda info: received.append(info.data))

        assert received == []
        scheduler.run_pending()

    assert received == [1]


def test_manual_scheduler_logs_callback_errors(caplog: pytest.LogCaptureFixture):
    """Test that callback errors are logged and do not stop the queue."""
    scheduler = ManualScheduler()

    def broken() -> None:
        msg = "broken callback"
        raise RuntimeError(msg)

    scheduler.schedule(broken)
    scheduler.schedule(lambda: None)

    assert scheduler.run_pending() == 2  # noqa: PLR2004
    assert "Error in scheduled callback" in caplog.text


def test_manual_scheduler_limit():
    """Test that run_pending stops after limit callbacks."""
    scheduler = ManualScheduler()
    calls: list[int] = []
    for i in range(3):
        scheduler.schedule(calls.append, i)

    assert scheduler.run_pending(limit=2) == 2  # noqa: PLR2004
    assert calls == [0, 1]
    assert scheduler.pending == 1


def test_log_failures(caplog: pytest.LogCaptureFixture):
    """Test that log_failures logs every failure at debug level."""
    with (
        configured(log_failures=True, report_unhandled=False),
        caplog.at_level("DEBUG", logger="anysignal"),
    ):
        Signal.failed("reason")

    assert "failed with 'reason'" in caplog.text
