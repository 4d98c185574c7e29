from __future__ import annotations

from fastapi import Request

from ..recorder import SessionRecorder
from .timer_service import TimerService


def get_recorder(request: Request) -> SessionRecorder:
    return request.app.state.recorder


def get_timer(request: Request) -> TimerService:
    return request.app.state.timer
