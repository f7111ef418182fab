"""
Shared fixtures: a manual clock for the timer engine, a ticker that only fires
when told to, and an API client wired to a throwaway task file.
"""

from __future__ import annotations

import os
from typing import Callable, List

import pytest

# Keep stray imports of the app from touching ./storage
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from dashboard.main import app  # noqa: E402
from dashboard.repositories import get_repository  # noqa: E402
from dashboard.storage import JsonFileRepository  # noqa: E402
from dashboard.ticker import TimerDriver, TimerRegistry, get_timer_registry  # noqa: E402
from dashboard.timer_engine import Countdown, Stopwatch, TimerKind  # noqa: E402


class ManualClock:
    """Millisecond clock that only moves when advanced."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FakeTicker:
    """Stands in for RepeatingTask; fires only when fire() is called."""

    def __init__(self, interval_ms: int, callback: Callable[["FakeTicker"], None]) -> None:
        self.interval_ms = interval_ms
        self._callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def join(self, timeout=None) -> None:
        pass

    def fire(self) -> None:
        # Deliberately ignores cancellation: a late firing must be rejected by the receiver.
        self._callback(self)


class FakeTickerFactory:
    def __init__(self) -> None:
        self.tickers: List[FakeTicker] = []

    def __call__(self, interval_ms: int, callback) -> FakeTicker:
        ticker = FakeTicker(interval_ms, callback)
        self.tickers.append(ticker)
        return ticker

    @property
    def last(self) -> FakeTicker:
        return self.tickers[-1]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def tickers() -> FakeTickerFactory:
    return FakeTickerFactory()


@pytest.fixture
def tasks_path(tmp_path):
    return tmp_path / "storage" / "todos.json"


@pytest.fixture
def file_repo(tasks_path) -> JsonFileRepository:
    return JsonFileRepository(str(tasks_path))


@pytest.fixture
def registry(clock, tickers) -> TimerRegistry:
    return TimerRegistry(
        drivers={
            TimerKind.COUNTDOWN: TimerDriver(Countdown(clock), 100, tickers),
            TimerKind.STOPWATCH: TimerDriver(Stopwatch(clock), 100, tickers),
        }
    )


@pytest.fixture
def client(file_repo, registry):
    app.dependency_overrides[get_repository] = lambda: file_repo
    app.dependency_overrides[get_timer_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
