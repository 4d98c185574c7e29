from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from threading import RLock
from typing import Callable

from .clock import Scheduler, TickHandle
from .lifecycle import AppState, LifecycleNotifier, Subscription


logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class TimerSettings:
    default_duration_seconds: int = 25 * 60
    min_duration_seconds: int = 5 * 60
    step_minutes: int = 5
    default_category: str = "Study"
    tick_seconds: float = 1.0


@dataclass(frozen=True)
class TimerState:
    configured_duration_seconds: int
    remaining_seconds: int
    phase: Phase
    category: str
    distraction_count: int

    @property
    def elapsed_seconds(self) -> int:
        return self.configured_duration_seconds - self.remaining_seconds


@dataclass(frozen=True)
class SessionCompleted:
    duration_seconds: int
    category: str
    distractions: int


CompletionCallback = Callable[[SessionCompleted], None]
ProgressCallback = Callable[[str, dict[str, object]], None]


def format_countdown(seconds: int) -> str:
    minutes, sec = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{sec:02d}"


class TimerEngine:
    """Countdown state machine for a single focus session at a time.

    Phases move Idle -> Running <-> Paused -> (Finished) -> Idle. Operations
    called from a phase that does not allow them return ``False`` and change
    nothing. The recurring tick exists only while the phase is Running.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_complete: CompletionCallback | None = None,
        progress_callback: ProgressCallback | None = None,
        settings: TimerSettings | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.progress_callback = progress_callback
        self.settings = settings or TimerSettings()

        self._lock = RLock()
        self._configured = max(
            self.settings.min_duration_seconds,
            int(self.settings.default_duration_seconds),
        )
        self._remaining = self._configured
        self._phase = Phase.IDLE
        self._category = self.settings.default_category
        self._distractions = 0
        self._tick: TickHandle | None = None
        self._subscription: Subscription | None = None

    @property
    def state(self) -> TimerState:
        with self._lock:
            return TimerState(
                configured_duration_seconds=self._configured,
                remaining_seconds=self._remaining,
                phase=self._phase,
                category=self._category,
                distraction_count=self._distractions,
            )

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def ticking(self) -> bool:
        return self._tick is not None and self._tick.active

    def configure(self, delta_minutes: int) -> bool:
        with self._lock:
            if not self._guard("configure", Phase.IDLE):
                return False
            self._configured = max(
                self.settings.min_duration_seconds,
                self._configured + int(delta_minutes) * 60,
            )
            self._remaining = self._configured
            self._emit("configure")
            return True

    def select_category(self, category: str) -> bool:
        with self._lock:
            if not self._guard("select_category", Phase.IDLE):
                return False
            self._category = str(category).strip()
            self._emit("category")
            return True

    def start(self) -> bool:
        with self._lock:
            if not self._guard("start", Phase.IDLE, Phase.PAUSED):
                return False
            if self._phase == Phase.IDLE:
                self._remaining = self._configured
                self._distractions = 0
            self._phase = Phase.RUNNING
            self._start_ticking()
            self._emit("start")
            return True

    def pause(self) -> bool:
        with self._lock:
            if not self._guard("pause", Phase.RUNNING):
                return False
            self._stop_ticking()
            self._phase = Phase.PAUSED
            self._distractions += 1
            self._emit("pause")
            return True

    def finish(self) -> bool:
        with self._lock:
            if not self._guard("finish", Phase.RUNNING, Phase.PAUSED):
                return False
            self._stop_ticking()
            self._phase = Phase.FINISHED
            event = SessionCompleted(
                duration_seconds=self._configured - self._remaining,
                category=self._category,
                distractions=self._distractions,
            )
            try:
                self._emit("finish", duration_seconds=event.duration_seconds)
                if self.on_complete is not None:
                    self.on_complete(event)
            finally:
                self._back_to_idle()
                self._emit("idle")
            return True

    def reset(self) -> bool:
        with self._lock:
            if not self._guard("reset", Phase.RUNNING, Phase.PAUSED):
                return False
            self._stop_ticking()
            self._back_to_idle()
            self._emit("reset")
            return True

    def handle_lifecycle(self, state: AppState | str) -> bool:
        """Pause a running session when the host app leaves the foreground."""
        parsed = AppState.parse(state)
        with self._lock:
            if parsed == AppState.BACKGROUND and self._phase == Phase.RUNNING:
                logger.info("app moved to background, pausing session")
                return self.pause()
            return False

    def attach_lifecycle(self, notifier: LifecycleNotifier) -> None:
        with self._lock:
            if self._subscription is not None and not self._subscription.removed:
                return
            self._subscription = notifier.subscribe(self.handle_lifecycle)

    def close(self) -> None:
        with self._lock:
            self._stop_ticking()
            if self._subscription is not None:
                self._subscription.remove()
                self._subscription = None

    def _on_tick(self, handle_ref: list[TickHandle]) -> None:
        with self._lock:
            # Ticks from a cancelled handle may still arrive from another thread.
            if self._phase != Phase.RUNNING or not handle_ref or handle_ref[0] is not self._tick:
                return
            self._remaining = max(0, self._remaining - 1)
            self._emit("tick")
            if self._remaining == 0:
                self.finish()

    def _start_ticking(self) -> None:
        self._stop_ticking()
        handle_ref: list[TickHandle] = []
        handle = self.scheduler.call_every(
            self.settings.tick_seconds,
            lambda: self._on_tick(handle_ref),
        )
        handle_ref.append(handle)
        self._tick = handle

    def _stop_ticking(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _back_to_idle(self) -> None:
        self._remaining = self._configured
        self._distractions = 0
        self._phase = Phase.IDLE

    def _guard(self, operation: str, *allowed: Phase) -> bool:
        if self._phase in allowed:
            return True
        logger.debug("ignored %s while %s", operation, self._phase.value)
        return False

    def _emit(self, event: str, **extra: object) -> None:
        if self.progress_callback is None:
            return
        payload: dict[str, object] = {
            "phase": self._phase.value,
            "configured_duration_seconds": self._configured,
            "remaining_seconds": self._remaining,
            "category": self._category,
            "distraction_count": self._distractions,
        }
        payload.update(extra)
        self.progress_callback(event, payload)
