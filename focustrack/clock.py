from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
import logging
import threading
import time
from typing import Callable, Protocol


logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]

_EPOCH = datetime(1970, 1, 1)


class LocalTimezone(tzinfo):
    """The host's zone, with the UTC offset looked up for each instant.

    ``datetime.now().astimezone()`` pins today's offset, so arithmetic on it
    goes wrong across a daylight-saving change. This zone asks the OS instead.
    """

    def utcoffset(self, dt: datetime | None) -> timedelta:
        return timedelta(seconds=self._local(dt).tm_gmtoff)

    def dst(self, dt: datetime | None) -> timedelta:
        if self._local(dt).tm_isdst > 0:
            return self.utcoffset(dt) + timedelta(seconds=time.timezone)
        return timedelta(0)

    def tzname(self, dt: datetime | None) -> str:
        return self._local(dt).tm_zone

    def fromutc(self, dt: datetime) -> datetime:
        stamp = (dt.replace(tzinfo=None) - _EPOCH).total_seconds()
        return dt + timedelta(seconds=time.localtime(stamp).tm_gmtoff)

    def __repr__(self) -> str:
        return "LocalTimezone()"

    @staticmethod
    def _local(dt: datetime | None) -> time.struct_time:
        if dt is None:
            return time.localtime()
        wall = (dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second, dt.weekday(), 0, -1)
        return time.localtime(time.mktime(wall))


LOCAL_TZ = LocalTimezone()


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class TickHandle(Protocol):
    @property
    def active(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: TickCallback) -> TickHandle:
        ...


class RealClock:
    def now(self) -> datetime:
        return datetime.now(LOCAL_TZ)


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        base = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        self._current = base

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=max(0.0, seconds))


def to_epoch_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.astimezone()
    return int(round(value.timestamp() * 1000))


class _ThreadTick:
    def __init__(self, interval: float, callback: TickCallback) -> None:
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    @property
    def active(self) -> bool:
        return not self._stopped.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        # May be called from inside the callback, so never join here.
        self._stopped.set()

    def _run(self) -> None:
        started = time.monotonic()
        fired = 0
        while True:
            deadline = started + (fired + 1) * self.interval
            if self._stopped.wait(max(0.0, deadline - time.monotonic())):
                return
            fired += 1
            try:
                self.callback()
            except Exception:
                # The handle stays active; the next deadline still fires.
                logger.exception("tick callback failed")


class ThreadScheduler:
    """Fires callbacks from a daemon thread per handle, on fixed deadlines."""

    def call_every(self, interval: float, callback: TickCallback) -> _ThreadTick:
        tick = _ThreadTick(max(0.001, float(interval)), callback)
        tick.start()
        return tick


class _FakeTick:
    def __init__(self, interval: float, callback: TickCallback, next_due: float) -> None:
        self.interval = interval
        self.callback = callback
        self.next_due = next_due
        self.fired = 0
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class FakeScheduler:
    """Virtual-time scheduler; ``advance`` fires due callbacks in order."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self._now = 0.0
        self._handles: list[_FakeTick] = []

    def call_every(self, interval: float, callback: TickCallback) -> _FakeTick:
        tick = _FakeTick(float(interval), callback, self._now + float(interval))
        self._handles.append(tick)
        return tick

    def active_handles(self) -> list[_FakeTick]:
        return [item for item in self._handles if item.active]

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = [item for item in self._handles if item.active and item.next_due <= target]
            if not due:
                break
            tick = min(due, key=lambda item: item.next_due)
            self._move_to(tick.next_due)
            tick.next_due += tick.interval
            tick.fired += 1
            tick.callback()
        self._move_to(target)

    def _move_to(self, instant: float) -> None:
        if self.clock is not None and instant > self._now:
            self.clock.advance(instant - self._now)
        self._now = max(self._now, instant)
