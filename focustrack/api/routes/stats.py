from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from ...recorder import SessionRecorder
from ...reporting import build_report
from ..deps import get_recorder
from ..schemas import DayBucketOut, StatsOut, TotalsOut

router = APIRouter(prefix="/api/v1", tags=["stats"])


@router.get("/stats", response_model=StatsOut)
def get_stats(request: Request, recorder: SessionRecorder = Depends(get_recorder)) -> StatsOut:
    report = build_report(recorder.load(), now=request.app.state.clock.now())
    return StatsOut(
        totals=TotalsOut(**asdict(report.totals)),
        weekly=[DayBucketOut(label=day.label, total_minutes=day.total_minutes) for day in report.weekly],
        categories=report.categories,
    )
