"""
Sampling trigger for timer instruments.

A ``RepeatingTask`` fires a callback on a fixed cadence from a daemon thread
until it is cancelled. A ``TimerDriver`` binds one instrument to one such task:
commands go through the driver, every tick samples the instrument and fans the
snapshot out to subscribed observers, and the task is cancelled the moment the
instrument leaves RUNNING (pause, reset, or the countdown finishing).

A tick that was already in flight when its task was cancelled is discarded
before it touches the instrument.
"""

from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from .settings import get_settings
from .timer_engine import (
    Countdown,
    Instrument,
    TimerKind,
    TimerSnapshot,
    TimerState,
    make_instrument,
)

logger = logging.getLogger(__name__)

Observer = Callable[[TimerSnapshot], None]


# PUBLIC_INTERFACE
class RepeatingTask:
    """
    Cancellable repeating task handle.

    The callback receives the handle itself, so a receiver can tell a live
    firing from a stale one.
    """

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[["RepeatingTask"], None],
        name: str = "timer-ticker",
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._interval_s = interval_ms / 1000.0
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop further firings. Idempotent and non-blocking."""
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.wait(self._interval_s):
            try:
                self._callback(self)
            except Exception:
                logger.exception("ticker callback failed (%s)", self._thread.name)


TickerFactory = Callable[[int, Callable[[RepeatingTask], None]], RepeatingTask]


def _default_ticker_factory(interval_ms: int, callback: Callable[[RepeatingTask], None]) -> RepeatingTask:
    return RepeatingTask(interval_ms, callback)


# PUBLIC_INTERFACE
class TimerDriver:
    """
    Owns one instrument and its sampling trigger.

    All commands and samples are serialized by a lock. Observers are called
    outside the lock, with the snapshot taken on that tick.
    """

    def __init__(
        self,
        instrument: Instrument,
        interval_ms: int = 100,
        ticker_factory: TickerFactory = _default_ticker_factory,
    ) -> None:
        self._instrument = instrument
        self._interval_ms = interval_ms
        self._ticker_factory = ticker_factory
        self._lock = threading.RLock()
        self._ticker: Optional[RepeatingTask] = None
        self._observers: List[Observer] = []

    @property
    def instrument(self) -> Instrument:
        return self._instrument

    @property
    def kind(self) -> TimerKind:
        return self._instrument.kind

    @property
    def ticking(self) -> bool:
        return self._ticker is not None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unregisters it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    # ---- Queries ----

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            snap, finished = self._sample_locked()
            observers = list(self._observers) if finished else []
        self._notify(observers, snap)
        return snap

    # ---- Commands ----

    def configure(self, hours: int, minutes: int, seconds: int) -> TimerSnapshot:
        with self._lock:
            setting = self._countdown().configure(hours, minutes, seconds)
            logger.info("countdown configured to %02d:%02d:%02d", setting.hours, setting.minutes, setting.seconds)
            return self._instrument.snapshot()

    def step(self, unit: str, delta: int) -> TimerSnapshot:
        with self._lock:
            self._countdown().step(unit, delta)
            return self._instrument.snapshot()

    def start(self) -> TimerSnapshot:
        with self._lock:
            self._instrument.start()
            self._schedule()
            logger.info("%s started", self.kind.value)
            return self._instrument.snapshot()

    def pause(self) -> TimerSnapshot:
        with self._lock:
            self._instrument.pause()
            self._cancel_ticker()
            snap = self._instrument.snapshot()
            finished = snap.state is TimerState.FINISHED
            if finished:
                logger.info("%s finished", self.kind.value)
            else:
                logger.info("%s paused at %s", self.kind.value, snap.display)
            observers = list(self._observers) if finished else []
        self._notify(observers, snap)
        return snap

    def resume(self) -> TimerSnapshot:
        with self._lock:
            self._instrument.resume()
            if self._instrument.state is TimerState.RUNNING:
                self._schedule()
                logger.info("%s resumed", self.kind.value)
            return self._instrument.snapshot()

    def reset(self) -> TimerSnapshot:
        with self._lock:
            self._cancel_ticker()
            self._instrument.reset()
            logger.info("%s reset", self.kind.value)
            return self._instrument.snapshot()

    def close(self) -> None:
        with self._lock:
            ticker = self._ticker
            self._cancel_ticker()
        if ticker is not None:
            ticker.join(timeout=1.0)

    # ---- Internals ----

    def _countdown(self) -> Countdown:
        if not isinstance(self._instrument, Countdown):
            raise TypeError(f"{self.kind.value} has no configurable duration")
        return self._instrument

    def _schedule(self) -> None:
        self._cancel_ticker()
        ticker = self._ticker_factory(self._interval_ms, self._on_tick)
        self._ticker = ticker
        ticker.start()

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _sample_locked(self) -> Tuple[TimerSnapshot, bool]:
        before = self._instrument.state
        snap = self._instrument.snapshot()
        finished = before is TimerState.RUNNING and snap.state is TimerState.FINISHED
        if finished:
            self._cancel_ticker()
            logger.info("%s finished", self.kind.value)
        return snap, finished

    def _on_tick(self, handle: RepeatingTask) -> None:
        with self._lock:
            if handle is not self._ticker or handle.cancelled:
                return
            snap, _ = self._sample_locked()
            observers = list(self._observers)
        self._notify(observers, snap)

    def _notify(self, observers: List[Observer], snap: TimerSnapshot) -> None:
        for observer in observers:
            try:
                observer(snap)
            except Exception:
                logger.exception("timer observer failed for %s", self.kind.value)


# PUBLIC_INTERFACE
class TimerRegistry:
    """The dashboard's single countdown and single stopwatch."""

    def __init__(
        self,
        interval_ms: int = 100,
        ticker_factory: TickerFactory = _default_ticker_factory,
        drivers: Optional[Dict[TimerKind, TimerDriver]] = None,
    ) -> None:
        self._drivers: Dict[TimerKind, TimerDriver] = drivers or {
            kind: TimerDriver(make_instrument(kind), interval_ms, ticker_factory) for kind in TimerKind
        }

    def get(self, kind: TimerKind) -> TimerDriver:
        return self._drivers[kind]

    def close(self) -> None:
        for driver in self._drivers.values():
            driver.close()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_timer_registry() -> TimerRegistry:
    """Process-wide timer registry using the configured tick interval."""
    return TimerRegistry(interval_ms=get_settings().tick_interval_ms)
