from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class ClockReading:
    iso: str
    date: str
    weekday: str
    time: str


# PUBLIC_INTERFACE
def read_clock(now: Optional[datetime] = None) -> ClockReading:
    """Format the current local time (or the given one) for the clock panel."""
    now = now or datetime.now()
    return ClockReading(
        iso=now.replace(microsecond=0).isoformat(),
        date=now.strftime("%Y-%m-%d"),
        weekday=WEEKDAYS[now.weekday()],
        time=now.strftime("%H:%M:%S"),
    )
