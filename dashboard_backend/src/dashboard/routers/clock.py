from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter

from ..clock import read_clock
from ..schemas import ClockOut

router = APIRouter(
    prefix="/api/clock",
    tags=["clock"],
)


# PUBLIC_INTERFACE
@router.get("", response_model=ClockOut, summary="Current Time", description="Current local date, weekday and time.")
def current_time() -> ClockOut:
    return ClockOut(**asdict(read_clock()))
