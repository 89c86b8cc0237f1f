"""Shared fixtures for signal tests."""

from __future__ import annotations

import asyncio

import pytest

from anysignal import ManualScheduler, SignalConfig, get_config, set_config


@pytest.fixture(autouse=True)
def reset_config():
    """Restore the default configuration after each test."""
    previous = get_config()
    set_config(SignalConfig())
    yield
    set_config(previous)


@pytest.fixture
def drain():
    """Let the event loop run a number of turns."""

    async def _drain(turns: int = 10) -> None:
        for _ in range(turns):
            await asyncio.sleep(0)

    return _drain


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    """Create a ManualScheduler instance for testing."""
    return ManualScheduler()
