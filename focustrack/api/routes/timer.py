from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..deps import get_timer
from ..schemas import CategoryRequest, ConfigureRequest, LifecycleRequest, TimerStateOut
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["timer"])


@router.get("/timer/state", response_model=TimerStateOut)
def timer_state(timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.state())


@router.post("/timer/configure", response_model=TimerStateOut)
def configure_timer(payload: ConfigureRequest, timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.configure(payload.delta_minutes))


@router.post("/timer/category", response_model=TimerStateOut)
def select_category(payload: CategoryRequest, timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.select_category(payload.category))


@router.post("/timer/start", response_model=TimerStateOut)
def start_timer(timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.start())


@router.post("/timer/pause", response_model=TimerStateOut)
def pause_timer(timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.pause())


@router.post("/timer/finish", response_model=TimerStateOut)
def finish_timer(timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.finish())


@router.post("/timer/reset", response_model=TimerStateOut)
def reset_timer(timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.reset())


@router.post("/timer/lifecycle", response_model=TimerStateOut)
def lifecycle(payload: LifecycleRequest, timer: TimerService = Depends(get_timer)) -> TimerStateOut:
    return TimerStateOut(**timer.notify_lifecycle(payload.state))


@router.get("/timer/stream")
def timer_stream(timer: TimerService = Depends(get_timer)) -> StreamingResponse:
    return StreamingResponse(timer.event_stream(), media_type="text/event-stream")
