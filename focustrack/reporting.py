from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable

from .clock import LOCAL_TZ, to_epoch_ms
from .db import UNCATEGORIZED, StoredSession


@dataclass(frozen=True)
class Totals:
    today_focus_seconds: int = 0
    all_time_focus_seconds: int = 0
    today_distractions: int = 0
    all_time_distractions: int = 0


@dataclass(frozen=True)
class DayBucket:
    label: str
    total_minutes: float


@dataclass(frozen=True)
class Report:
    totals: Totals
    weekly: list[DayBucket] = field(default_factory=list)
    categories: dict[str, int] = field(default_factory=dict)


def format_duration(seconds: int) -> str:
    total = max(0, int(seconds))
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours == 0 and minutes == 0:
        return f"{sec}s"
    if hours == 0:
        return f"{minutes}m {sec}s"
    return f"{hours}h {minutes}m"


def day_label(value: datetime) -> str:
    return f"{value.day}/{value.month}"


def compute_totals(records: Iterable[StoredSession], now: datetime) -> Totals:
    today_start_ms = to_epoch_ms(_local_midnight(now))

    today_focus = 0
    all_time_focus = 0
    today_distractions = 0
    all_time_distractions = 0

    for item in records:
        distractions = item.distractions or 0
        all_time_focus += item.duration_seconds
        all_time_distractions += distractions
        if item.timestamp_ms >= today_start_ms:
            today_focus += item.duration_seconds
            today_distractions += distractions

    return Totals(
        today_focus_seconds=today_focus,
        all_time_focus_seconds=all_time_focus,
        today_distractions=today_distractions,
        all_time_distractions=all_time_distractions,
    )


def compute_weekly_series(records: Iterable[StoredSession], now: datetime) -> list[DayBucket]:
    """Minutes per calendar day for the six days before today and today, oldest first."""
    ref = _aware(now)
    today = ref.date()
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    minutes = {day: 0.0 for day in days}

    window_start_ms = to_epoch_ms(_local_midnight(ref) - timedelta(days=6))
    now_ms = to_epoch_ms(ref)

    for item in records:
        if item.timestamp_ms < window_start_ms or item.timestamp_ms > now_ms:
            continue
        local_day = item.completed_at(ref.tzinfo).date()
        if local_day in minutes:
            minutes[local_day] += item.duration_seconds / 60

    return [DayBucket(label=day_label(day), total_minutes=minutes[day]) for day in days]


def compute_category_distribution(records: Iterable[StoredSession]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for item in records:
        name = (item.category or "").strip() or UNCATEGORIZED
        totals[name] = totals.get(name, 0) + item.duration_seconds
    return totals


def build_report(records: Iterable[StoredSession], now: datetime | None = None) -> Report:
    ref = _aware(now or datetime.now(LOCAL_TZ))
    items = list(records)
    return Report(
        totals=compute_totals(items, ref),
        weekly=compute_weekly_series(items, ref),
        categories=compute_category_distribution(items),
    )


def _aware(value: datetime) -> datetime:
    """Pin ``value`` to a zone that gives every record its own calendar day.

    Naive values are local wall time. A fixed offset that matches the host's
    offset at that instant (what ``datetime.now().astimezone()`` returns) is
    taken to mean local time too, so days before a DST change keep their own
    offset. Any other zone is used as given.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=LOCAL_TZ)
    if isinstance(value.tzinfo, timezone):
        local = value.astimezone(LOCAL_TZ)
        if local.utcoffset() == value.utcoffset():
            return local
    return value


def _local_midnight(value: datetime) -> datetime:
    return _aware(value).replace(hour=0, minute=0, second=0, microsecond=0)
