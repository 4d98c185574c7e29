from __future__ import annotations

import unittest
from unittest import mock

from focustrack.api.timer_service import TimerService
from focustrack.clock import FakeScheduler
from focustrack.db import SessionStore
from focustrack.desktop import bind_lifecycle
from focustrack.lifecycle import AppState
from focustrack.recorder import SessionRecorder


class _Event:
    def __init__(self) -> None:
        self.handlers: list = []

    def __iadd__(self, handler):
        self.handlers.append(handler)
        return self

    def fire(self, *args: object) -> None:
        for handler in self.handlers:
            handler(*args)


class _Window:
    def __init__(self) -> None:
        self.events = type("Events", (), {})()
        self.events.minimized = _Event()
        self.events.restored = _Event()


class _Timer:
    def __init__(self) -> None:
        self.signals: list[AppState] = []

    def notify_lifecycle(self, state: AppState) -> None:
        self.signals.append(state)


class TestDesktopLifecycle(unittest.TestCase):
    def test_minimize_and_restore_map_to_app_state(self) -> None:
        window = _Window()
        timer = _Timer()
        bind_lifecycle(window, timer)

        window.events.minimized.fire()
        window.events.restored.fire(window)

        self.assertEqual(timer.signals, [AppState.BACKGROUND, AppState.FOREGROUND])

    def test_minimize_pauses_running_service(self) -> None:
        service = TimerService(SessionRecorder(mock.Mock(spec=SessionStore)), scheduler=FakeScheduler())
        window = _Window()
        bind_lifecycle(window, service)

        service.start()
        window.events.minimized.fire()
        state = service.state()
        self.assertEqual(state["phase"], "paused")
        self.assertEqual(state["distraction_count"], 1)
        service.close()


if __name__ == "__main__":
    unittest.main()
