from __future__ import annotations

import json
import queue
from threading import Lock
from typing import Any, Callable, Iterator

from ..clock import Scheduler, ThreadScheduler
from ..lifecycle import AppState, LifecycleNotifier
from ..notifier import SessionNotifier
from ..recorder import SessionRecorder
from ..timer import Phase, SessionCompleted, TimerEngine, TimerSettings


SUBSCRIBER_QUEUE_SIZE = 200


class TimerService:
    """One long-lived engine shared by the HTTP routes and the desktop shell."""

    def __init__(
        self,
        recorder: SessionRecorder,
        scheduler: Scheduler | None = None,
        settings: TimerSettings | None = None,
        notify: bool = False,
    ) -> None:
        self._lock = Lock()
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []
        self.recorder = recorder
        if notify and recorder.notifier is None:
            recorder.notifier = SessionNotifier()
        self.lifecycle = LifecycleNotifier()
        self.engine = TimerEngine(
            scheduler=scheduler or ThreadScheduler(),
            on_complete=self._on_complete,
            progress_callback=self._on_event,
            settings=settings,
        )
        self.engine.attach_lifecycle(self.lifecycle)
        self.last_session: dict[str, Any] | None = None

    def state(self) -> dict[str, Any]:
        snapshot = self.engine.state
        return {
            "phase": snapshot.phase.value,
            "configured_duration_seconds": snapshot.configured_duration_seconds,
            "remaining_seconds": snapshot.remaining_seconds,
            "category": snapshot.category,
            "distraction_count": snapshot.distraction_count,
            "app_state": self.lifecycle.current.value,
            "last_session": self.last_session,
        }

    def configure(self, delta_minutes: int) -> dict[str, Any]:
        return self._apply(lambda: self.engine.configure(delta_minutes))

    def select_category(self, category: str) -> dict[str, Any]:
        return self._apply(lambda: self.engine.select_category(category))

    def start(self) -> dict[str, Any]:
        return self._apply(self.engine.start)

    def pause(self) -> dict[str, Any]:
        return self._apply(self.engine.pause)

    def finish(self) -> dict[str, Any]:
        return self._apply(self.engine.finish)

    def reset(self) -> dict[str, Any]:
        return self._apply(self.engine.reset)

    def notify_lifecycle(self, state: AppState | str) -> dict[str, Any]:
        was_running = self.engine.phase == Phase.RUNNING
        self.lifecycle.publish(state)
        paused = was_running and self.engine.phase == Phase.PAUSED
        return {"accepted": paused, **self.state()}

    def close(self) -> None:
        self.engine.close()

    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def event_stream(self, keepalive_seconds: float = 10.0) -> Iterator[str]:
        """Server-sent event lines for one client; unsubscribes when closed."""
        return self._drain(self.subscribe(), keepalive_seconds)

    def _drain(self, subscriber: queue.Queue[dict[str, Any]], keepalive_seconds: float) -> Iterator[str]:
        try:
            while True:
                try:
                    event = subscriber.get(timeout=keepalive_seconds)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
        finally:
            self.unsubscribe(subscriber)

    def _apply(self, operation: Callable[[], bool]) -> dict[str, Any]:
        accepted = operation()
        return {"accepted": accepted, **self.state()}

    def _broadcast(self, event: dict[str, Any]) -> None:
        with self._lock:
            alive: list[queue.Queue[dict[str, Any]]] = []
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                    alive.append(q)
                except queue.Full:
                    continue
            self._subscribers = alive

    def _on_complete(self, event: SessionCompleted) -> None:
        new_id = self.recorder.record(event)
        self.last_session = {
            "id": new_id,
            "duration_seconds": event.duration_seconds,
            "category": event.category,
            "distractions": event.distractions,
        }
        self._broadcast({"event": "session_completed", **self.last_session})

    def _on_event(self, event: str, payload: dict[str, Any]) -> None:
        self._broadcast({"event": event, **payload})
