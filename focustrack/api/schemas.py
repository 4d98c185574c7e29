from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SessionOut(BaseModel):
    id: int
    duration_seconds: int
    timestamp_ms: int
    category: str | None = None
    distractions: int


class TotalsOut(BaseModel):
    today_focus_seconds: int
    all_time_focus_seconds: int
    today_distractions: int
    all_time_distractions: int


class DayBucketOut(BaseModel):
    label: str
    total_minutes: float


class StatsOut(BaseModel):
    totals: TotalsOut
    weekly: list[DayBucketOut]
    categories: dict[str, int]


class LastSessionOut(BaseModel):
    id: int | None = None
    duration_seconds: int
    category: str
    distractions: int


class TimerStateOut(BaseModel):
    accepted: bool = True
    phase: str
    configured_duration_seconds: int
    remaining_seconds: int
    category: str
    distraction_count: int
    app_state: str
    last_session: LastSessionOut | None = None


class ConfigureRequest(BaseModel):
    delta_minutes: int = Field(ge=-600, le=600)


class CategoryRequest(BaseModel):
    category: str = Field(max_length=64)


class LifecycleRequest(BaseModel):
    state: Literal["foreground", "active", "background", "inactive"]


class SeedRequest(BaseModel):
    count: int = Field(default=30, ge=1, le=1000)


class CountResult(BaseModel):
    count: int


class HealthOut(BaseModel):
    status: str = Field(default="ok")


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    platform: str
    categories: list[str]
