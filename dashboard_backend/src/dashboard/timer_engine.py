"""Timer engine: countdown and stopwatch state machines, pure logic, no I/O.

All time values are integer milliseconds. The current time comes from an
injected ``clock`` callable so tests can drive the engine deterministically.

Neither instrument counts ticks. The displayed value is always recomputed
from an absolute anchor (stopwatch) or target (countdown) against ``clock()``,
so irregular or missed samples never accumulate error.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .errors import InvalidDuration, TimerStateError, ValidationError

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE

# Upper bound of each countdown input field.
UNIT_LIMITS: dict[str, int] = {"hours": 99, "minutes": 59, "seconds": 59}


def wall_clock_ms() -> int:
    """Current wall-clock time in integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class TimerKind(str, Enum):
    COUNTDOWN = "countdown"
    STOPWATCH = "stopwatch"


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"  # countdown only


@dataclass(frozen=True)
class HMS:
    hours: int
    minutes: int
    seconds: int


def split_hms(ms: int) -> HMS:
    """Decompose a duration into hours/minutes/seconds. Hours are unbounded."""
    ms = max(int(ms), 0)
    return HMS(
        hours=ms // MS_PER_HOUR,
        minutes=ms // MS_PER_MINUTE % 60,
        seconds=ms // MS_PER_SECOND % 60,
    )


def format_hms(ms: int) -> str:
    """Format a duration as 'HH:MM:SS'."""
    hms = split_hms(ms)
    return f"{hms.hours:02d}:{hms.minutes:02d}:{hms.seconds:02d}"


@dataclass(frozen=True)
class DurationSetting:
    """Configured countdown length as the three input fields."""

    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @classmethod
    def clamped(cls, hours: int, minutes: int, seconds: int) -> "DurationSetting":
        """Build a setting from typed values, pinning each into its own range."""
        return cls(
            hours=min(max(int(hours), 0), UNIT_LIMITS["hours"]),
            minutes=min(max(int(minutes), 0), UNIT_LIMITS["minutes"]),
            seconds=min(max(int(seconds), 0), UNIT_LIMITS["seconds"]),
        )

    @property
    def total_ms(self) -> int:
        return (self.hours * 3600 + self.minutes * 60 + self.seconds) * MS_PER_SECOND

    def stepped(self, unit: str, delta: int) -> "DurationSetting":
        """
        Move one field by delta with wraparound: past the max wraps to 0 and
        below 0 wraps to the max.
        """
        if unit not in UNIT_LIMITS:
            raise ValidationError(
                f"unit must be one of {', '.join(UNIT_LIMITS)}", detail={"unit": unit}
            )
        span = UNIT_LIMITS[unit] + 1
        value = (getattr(self, unit) + int(delta)) % span
        return replace(self, **{unit: value})


@dataclass(frozen=True)
class TimerSnapshot:
    """One sampled reading of an instrument."""

    kind: TimerKind
    state: TimerState
    value_ms: int

    @property
    def hms(self) -> HMS:
        return split_hms(self.value_ms)

    @property
    def display(self) -> str:
        return format_hms(self.value_ms)


class Instrument(ABC):
    """State shared by both instruments: the state and the anchor/accumulated pair."""

    kind: TimerKind

    def __init__(self, clock: Clock = wall_clock_ms) -> None:
        self._clock = clock
        self._state = TimerState.IDLE
        self._anchor: Optional[int] = None
        self._accumulated = 0

    # ---- Read-only properties ----

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def anchor(self) -> Optional[int]:
        return self._anchor

    @property
    def accumulated(self) -> int:
        return self._accumulated

    # ---- Helpers ----

    def _require(self, command: str, *allowed: TimerState) -> None:
        if self._state not in allowed:
            raise TimerStateError(
                f"cannot {command} a {self.kind.value} that is {self._state.value}",
                detail={"command": command, "state": self._state.value},
            )

    # ---- Commands ----

    @abstractmethod
    def start(self) -> None:
        """Leave idle and begin running."""

    @abstractmethod
    def pause(self) -> None:
        """Freeze the current value."""

    @abstractmethod
    def resume(self) -> None:
        """Continue from the frozen value."""

    @abstractmethod
    def sample(self) -> int:
        """Current value in milliseconds."""

    def snapshot(self) -> TimerSnapshot:
        value = self.sample()
        return TimerSnapshot(kind=self.kind, state=self._state, value_ms=value)

    def reset(self) -> None:
        """Legal from any state: clear all timing fields and return to idle."""
        self._state = TimerState.IDLE
        self._anchor = None
        self._accumulated = 0


class Stopwatch(Instrument):
    """Counts up indefinitely. States: idle, running, paused."""

    kind = TimerKind.STOPWATCH

    def start(self) -> None:
        self._require("start", TimerState.IDLE)
        self._accumulated = 0
        self._anchor = self._clock()
        self._state = TimerState.RUNNING

    def pause(self) -> None:
        self._require("pause", TimerState.RUNNING)
        self._accumulated = self.sample()
        self._anchor = None
        self._state = TimerState.PAUSED

    def resume(self) -> None:
        self._require("resume", TimerState.PAUSED)
        self._anchor = self._clock()
        self._state = TimerState.RUNNING

    def sample(self) -> int:
        if self._state is TimerState.RUNNING and self._anchor is not None:
            # A wall clock stepped backwards must not make elapsed time shrink.
            return self._accumulated + max(0, self._clock() - self._anchor)
        return self._accumulated


class Countdown(Instrument):
    """
    Counts down to zero from a configured duration.

    While running the remaining time is ``max(0, target - now)``. The first
    sample that sees zero moves the countdown to FINISHED, which is terminal
    until reset.
    """

    kind = TimerKind.COUNTDOWN

    def __init__(self, clock: Clock = wall_clock_ms, duration: Optional[DurationSetting] = None) -> None:
        super().__init__(clock)
        self._duration = duration or DurationSetting()
        self._target: Optional[int] = None

    @property
    def duration(self) -> DurationSetting:
        return self._duration

    @property
    def target(self) -> Optional[int]:
        return self._target

    # ---- Configuration (idle only) ----

    def configure(self, hours: int, minutes: int, seconds: int) -> DurationSetting:
        self._require("configure", TimerState.IDLE)
        self._duration = DurationSetting.clamped(hours, minutes, seconds)
        return self._duration

    def step(self, unit: str, delta: int) -> DurationSetting:
        self._require("configure", TimerState.IDLE)
        self._duration = self._duration.stepped(unit, delta)
        return self._duration

    # ---- Commands ----

    def start(self) -> None:
        self._require("start", TimerState.IDLE)
        total = self._duration.total_ms
        if total <= 0:
            raise InvalidDuration("countdown duration must be greater than zero")
        now = self._clock()
        self._anchor = now
        self._target = now + total
        self._accumulated = 0
        self._state = TimerState.RUNNING

    def pause(self) -> None:
        self._require("pause", TimerState.RUNNING)
        remaining = self.sample()
        if self._state is TimerState.FINISHED:
            return
        self._accumulated = remaining
        self._anchor = None
        self._target = None
        self._state = TimerState.PAUSED

    def resume(self) -> None:
        self._require("resume", TimerState.PAUSED)
        if self._accumulated <= 0:
            return
        now = self._clock()
        self._anchor = now
        self._target = now + self._accumulated
        self._state = TimerState.RUNNING

    def reset(self) -> None:
        super().reset()
        self._target = None

    def sample(self) -> int:
        if self._state is TimerState.IDLE:
            return self._duration.total_ms
        if self._state is TimerState.PAUSED:
            return self._accumulated
        if self._state is TimerState.FINISHED or self._target is None:
            return 0

        remaining = max(0, self._target - self._clock())
        if remaining == 0:
            self._state = TimerState.FINISHED
            self._anchor = None
            self._target = None
            self._accumulated = 0
        return remaining


def make_instrument(kind: TimerKind, clock: Clock = wall_clock_ms) -> Instrument:
    if kind is TimerKind.COUNTDOWN:
        return Countdown(clock)
    return Stopwatch(clock)
