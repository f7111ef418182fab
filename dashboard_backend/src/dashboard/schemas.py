from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, StringConstraints

from .timer_engine import Countdown, Instrument, TimerSnapshot


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.

    Only the type is checked here; trimming and the non-empty rule belong to
    the repository so that every caller gets the same validation.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Buy milk"}})

    title: StrictStr = Field(..., description="Task title; surrounding whitespace is trimmed")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for toggling a task's completion flag.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"id": "1718000000000-k3j9x0a", "completed": True}})

    id: StrictStr = Field(..., min_length=1, description="Identifier of the task to update")
    completed: StrictBool = Field(..., description="New completion status")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task, and the shape of each persisted record.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": "1718000000000-k3j9x0a", "title": "Buy milk", "completed": False}
        }
    )

    id: StrictStr = Field(..., min_length=1, description="Unique identifier of the task")
    title: Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)] = Field(
        ..., description="Task title, never blank"
    )
    completed: StrictBool = Field(..., description="Completion status flag")


class ErrorResponse(BaseModel):
    """
    Envelope for every error response.
    """

    error: str = Field(..., description="Error taxonomy name, e.g. ValidationError or NotFound")
    message: str = Field(..., description="Human-readable explanation")
    detail: Optional[Any] = Field(default=None, description="Optional structured detail")


class DurationIn(BaseModel):
    """
    Countdown duration as typed into the three input fields. Out-of-range
    values are clamped, not rejected.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"hours": 0, "minutes": 25, "seconds": 0}})

    hours: StrictInt = Field(default=0, description="Hours, clamped to 0..99")
    minutes: StrictInt = Field(default=0, description="Minutes, clamped to 0..59")
    seconds: StrictInt = Field(default=0, description="Seconds, clamped to 0..59")


class StepIn(BaseModel):
    """
    Single-field increment/decrement with wraparound.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"unit": "minutes", "delta": 1}})

    unit: Literal["hours", "minutes", "seconds"] = Field(..., description="Field to step")
    delta: StrictInt = Field(default=1, description="Signed step; usually +1 or -1")


class DurationOut(BaseModel):
    hours: int
    minutes: int
    seconds: int
    total_ms: int


class TimerOut(BaseModel):
    """
    A sampled timer reading.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "kind": "countdown",
                "state": "running",
                "value_ms": 1499000,
                "hours": 0,
                "minutes": 24,
                "seconds": 59,
                "display": "00:24:59",
                "duration": {"hours": 0, "minutes": 25, "seconds": 0, "total_ms": 1500000},
            }
        }
    )

    kind: str = Field(..., description="countdown or stopwatch")
    state: str = Field(..., description="idle, running, paused or finished")
    value_ms: int = Field(..., description="Remaining (countdown) or elapsed (stopwatch) milliseconds")
    hours: int
    minutes: int
    seconds: int
    display: str = Field(..., description="HH:MM:SS rendering of value_ms")
    duration: Optional[DurationOut] = Field(default=None, description="Configured countdown duration")

    @classmethod
    def from_snapshot(cls, snap: TimerSnapshot, instrument: Instrument) -> "TimerOut":
        duration = None
        if isinstance(instrument, Countdown):
            d = instrument.duration
            duration = DurationOut(hours=d.hours, minutes=d.minutes, seconds=d.seconds, total_ms=d.total_ms)
        hms = snap.hms
        return cls(
            kind=snap.kind.value,
            state=snap.state.value,
            value_ms=snap.value_ms,
            hours=hms.hours,
            minutes=hms.minutes,
            seconds=hms.seconds,
            display=snap.display,
            duration=duration,
        )


class ClockOut(BaseModel):
    """
    Current local date and time.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "iso": "2026-10-19T14:03:27",
                "date": "2026-10-19",
                "weekday": "Monday",
                "time": "14:03:27",
            }
        }
    )

    iso: str
    date: str
    weekday: str
    time: str
