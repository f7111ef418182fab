from __future__ import annotations

import asyncio
import logging
from enum import Enum

from fastapi import APIRouter, Depends, WebSocket

from ..schemas import DurationIn, ErrorResponse, StepIn, TimerOut
from ..ticker import TimerDriver, TimerRegistry, get_timer_registry
from ..timer_engine import TimerKind, TimerSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/timers",
    tags=["timers"],
)


class TimerCommand(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    RESET = "reset"


def _out(driver: TimerDriver, snap: TimerSnapshot) -> TimerOut:
    return TimerOut.from_snapshot(snap, driver.instrument)


def _countdown(registry: TimerRegistry = Depends(get_timer_registry)) -> TimerDriver:
    return registry.get(TimerKind.COUNTDOWN)


# PUBLIC_INTERFACE
@router.get(
    "/{kind}",
    response_model=TimerOut,
    summary="Sample Timer",
    description="Sample the countdown or stopwatch. Sampling a countdown that has reached zero finishes it.",
)
def sample_timer(kind: TimerKind, registry: TimerRegistry = Depends(get_timer_registry)) -> TimerOut:
    driver = registry.get(kind)
    return _out(driver, driver.snapshot())


# PUBLIC_INTERFACE
@router.put(
    "/countdown/duration",
    response_model=TimerOut,
    summary="Configure Countdown",
    description="Set hours/minutes/seconds while the countdown is idle. Values are clamped into range.",
    responses={409: {"model": ErrorResponse, "description": "Countdown is not idle"}},
)
def configure_countdown(payload: DurationIn, driver: TimerDriver = Depends(_countdown)) -> TimerOut:
    return _out(driver, driver.configure(payload.hours, payload.minutes, payload.seconds))


# PUBLIC_INTERFACE
@router.post(
    "/countdown/step",
    response_model=TimerOut,
    summary="Step Countdown Field",
    description="Increment or decrement one duration field with wraparound while the countdown is idle.",
    responses={409: {"model": ErrorResponse, "description": "Countdown is not idle"}},
)
def step_countdown(payload: StepIn, driver: TimerDriver = Depends(_countdown)) -> TimerOut:
    return _out(driver, driver.step(payload.unit, payload.delta))


# PUBLIC_INTERFACE
@router.post(
    "/{kind}/{command}",
    response_model=TimerOut,
    summary="Timer Command",
    description="Apply start, pause, resume or reset to the countdown or stopwatch.",
    responses={
        400: {"model": ErrorResponse, "description": "Countdown has zero duration"},
        409: {"model": ErrorResponse, "description": "Command not legal in the current state"},
    },
)
def timer_command(
    kind: TimerKind,
    command: TimerCommand,
    registry: TimerRegistry = Depends(get_timer_registry),
) -> TimerOut:
    driver = registry.get(kind)
    snap = getattr(driver, command.value)()
    return _out(driver, snap)


async def _forward(websocket: WebSocket, driver: TimerDriver, queue: "asyncio.Queue[TimerSnapshot]") -> None:
    while True:
        snap = await queue.get()
        await websocket.send_json(_out(driver, snap).model_dump())


async def _until_disconnect(websocket: WebSocket) -> None:
    # Client messages carry nothing; they are read only to see the close.
    while (await websocket.receive())["type"] != "websocket.disconnect":
        pass


# PUBLIC_INTERFACE
@router.websocket("/{kind}/stream")
async def stream_timer(
    websocket: WebSocket,
    kind: TimerKind,
    registry: TimerRegistry = Depends(get_timer_registry),
) -> None:
    """
    Live feed of a timer.

    Sends one TimerOut message with the current value on connect, then one
    per sampling tick and one when the countdown finishes on its own. The
    subscription is dropped as soon as the client disconnects.
    """
    driver = registry.get(kind)
    await websocket.accept()

    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[TimerSnapshot]" = asyncio.Queue()
    # Observers run on the ticker thread.
    unsubscribe = driver.subscribe(lambda snap: loop.call_soon_threadsafe(queue.put_nowait, snap))
    logger.info("%s stream opened", kind.value)
    try:
        await websocket.send_json(_out(driver, driver.snapshot()).model_dump())
        tasks = {
            asyncio.ensure_future(_forward(websocket, driver, queue)),
            asyncio.ensure_future(_until_disconnect(websocket)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()
    finally:
        unsubscribe()
        logger.info("%s stream closed", kind.value)
