from __future__ import annotations

from enum import Enum
import logging
from threading import Lock
from typing import Callable


logger = logging.getLogger(__name__)


class AppState(str, Enum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"

    @classmethod
    def parse(cls, value: str | AppState) -> AppState:
        if isinstance(value, AppState):
            return value
        text = str(value).strip().lower()
        if text in {"foreground", "active"}:
            return cls.FOREGROUND
        if text in {"background", "inactive"}:
            return cls.BACKGROUND
        raise ValueError(f"unknown app state: {value!r}")


LifecycleListener = Callable[[AppState], None]


class Subscription:
    def __init__(self, notifier: LifecycleNotifier, listener: LifecycleListener) -> None:
        self._notifier = notifier
        self._listener = listener
        self._removed = False

    @property
    def removed(self) -> bool:
        return self._removed

    def remove(self) -> None:
        if self._removed:
            return
        self._removed = True
        self._notifier._discard(self._listener)


class LifecycleNotifier:
    """Fan-out of host foreground/background signals to subscribers."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._listeners: list[LifecycleListener] = []
        self._current = AppState.FOREGROUND

    @property
    def current(self) -> AppState:
        return self._current

    def subscribe(self, listener: LifecycleListener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, state: AppState | str) -> None:
        parsed = AppState.parse(state)
        with self._lock:
            previous = self._current
            self._current = parsed
            listeners = list(self._listeners)
        logger.debug("app state %s -> %s", previous.value, parsed.value)
        for listener in listeners:
            listener(parsed)

    def _discard(self, listener: LifecycleListener) -> None:
        with self._lock:
            self._listeners = [item for item in self._listeners if item is not listener]
