from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ...recorder import SessionRecorder
from ..deps import get_recorder
from ..schemas import CountResult, SeedRequest, SessionOut

router = APIRouter(prefix="/api/v1", tags=["sessions"])


@router.get("/sessions", response_model=list[SessionOut])
def list_sessions(
    limit: int = Query(default=200, ge=1, le=5000),
    recorder: SessionRecorder = Depends(get_recorder),
) -> list[SessionOut]:
    items = recorder.load()[:limit]
    return [SessionOut(**vars(item)) for item in items]


@router.delete("/sessions", response_model=CountResult)
def clear_sessions(
    confirm: bool = False,
    recorder: SessionRecorder = Depends(get_recorder),
) -> CountResult:
    if not confirm:
        raise HTTPException(status_code=400, detail="clearing history requires confirm=true")
    return CountResult(count=recorder.clear())


@router.post("/sessions/seed", response_model=CountResult)
def seed_sessions(
    payload: SeedRequest,
    recorder: SessionRecorder = Depends(get_recorder),
) -> CountResult:
    return CountResult(count=recorder.seed(payload.count))
