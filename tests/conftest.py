"""
Shared pytest fixtures for poolguard tests.

This module provides:
- A mock structured logger to count warning observations
- A recording sleep (sync and async) so no test waits for real
- ``FakeResource``: a scripted probe/close pair standing in for a pool
"""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure poolguard package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from poolguard.core.config import clear_settings_cache  # noqa: E402
from poolguard.execution.context import HookContext  # noqa: E402


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fakes
# =============================================================================


class RecordingSleep:
    """Sleep stand-in that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    async def async_sleep(self, seconds: float) -> None:
        self.calls.append(seconds)


class Flaky:
    """Operation that fails ``failures`` times, then returns ``result``."""

    def __init__(self, failures: int, result: object = None, error_factory=None) -> None:
        self.failures = failures
        self.result = result
        self.calls = 0
        self.errors: list[Exception] = []
        self._error_factory = error_factory or (lambda n: ConnectionError(f"failure {n}"))

    def __call__(self, *args) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            error = self._error_factory(self.calls)
            self.errors.append(error)
            raise error
        return self.result


class FakeResource:
    """A resource whose ping fails ``ping_failures`` times before succeeding."""

    def __init__(
        self,
        ping_failures: int = 0,
        *,
        close_error: Exception | None = None,
        ping_error_factory=None,
    ) -> None:
        self.ping_failures = ping_failures
        self.close_error = close_error
        self.ping_calls = 0
        self.close_calls = 0
        self.contexts: list[HookContext] = []
        self._ping_error_factory = ping_error_factory or (
            lambda n: ConnectionRefusedError(f"connection refused ({n})")
        )

    async def ping(self, ctx: HookContext) -> None:
        self.ping_calls += 1
        self.contexts.append(ctx)
        if self.ping_calls <= self.ping_failures:
            raise self._ping_error_factory(self.ping_calls)

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """A stand-in for a structlog logger."""
    return MagicMock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def background_ctx() -> HookContext:
    return HookContext.background()


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    """Keep POOLGUARD_* from the developer's shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("POOLGUARD_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
