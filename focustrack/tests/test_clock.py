from __future__ import annotations

from datetime import datetime, timedelta, timezone
import threading
import unittest

from focustrack.clock import (
    LOCAL_TZ,
    FakeClock,
    FakeScheduler,
    RealClock,
    ThreadScheduler,
    to_epoch_ms,
)
from focustrack.tests.test_helpers import CENTRAL_EUROPE, host_timezone


class TestFakeScheduler(unittest.TestCase):
    def test_fires_on_interval_and_moves_clock(self) -> None:
        clock = FakeClock(start=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
        scheduler = FakeScheduler(clock=clock)
        calls: list[int] = []
        handle = scheduler.call_every(1.0, lambda: calls.append(1))

        scheduler.advance(2.5)
        self.assertEqual(len(calls), 2)
        self.assertEqual(clock.now(), datetime(2026, 3, 1, 9, 0, 2, 500000, tzinfo=timezone.utc))

        handle.cancel()
        scheduler.advance(5)
        self.assertEqual(len(calls), 2)
        self.assertEqual(scheduler.active_handles(), [])

    def test_callback_may_cancel_itself(self) -> None:
        scheduler = FakeScheduler()
        calls: list[int] = []

        def tick() -> None:
            calls.append(1)
            if len(calls) == 3:
                handle.cancel()

        handle = scheduler.call_every(1.0, tick)
        scheduler.advance(10)
        self.assertEqual(len(calls), 3)


class TestThreadScheduler(unittest.TestCase):
    def test_fires_until_cancelled(self) -> None:
        fired = threading.Event()
        count: list[int] = []

        def tick() -> None:
            count.append(1)
            if len(count) >= 3:
                fired.set()

        handle = ThreadScheduler().call_every(0.01, tick)
        self.assertTrue(fired.wait(5))
        handle.cancel()
        self.assertFalse(handle.active)

    def test_callback_error_is_logged_and_ticking_continues(self) -> None:
        recovered = threading.Event()
        count: list[int] = []

        def tick() -> None:
            count.append(1)
            if len(count) == 1:
                raise RuntimeError("boom")
            recovered.set()

        with self.assertLogs("focustrack.clock", level="ERROR") as logs:
            handle = ThreadScheduler().call_every(0.01, tick)
            self.assertTrue(recovered.wait(5))
            self.assertTrue(handle.active)
            handle.cancel()

        self.assertIn("tick callback failed", logs.output[0])


class TestLocalTimezone(unittest.TestCase):
    def test_offset_follows_daylight_saving(self) -> None:
        with host_timezone(CENTRAL_EUROPE):
            winter = datetime(2026, 3, 28, 12, 0, tzinfo=LOCAL_TZ)
            summer = datetime(2026, 4, 1, 12, 0, tzinfo=LOCAL_TZ)
            self.assertEqual(winter.utcoffset(), timedelta(hours=1))
            self.assertEqual(summer.utcoffset(), timedelta(hours=2))
            self.assertEqual(winter.dst(), timedelta(0))
            self.assertEqual(summer.dst(), timedelta(hours=1))
            self.assertEqual(summer.tzname(), "CEST")

    def test_converts_instants_with_their_own_offset(self) -> None:
        with host_timezone(CENTRAL_EUROPE):
            moment = datetime(2026, 3, 28, 22, 30, tzinfo=timezone.utc).astimezone(LOCAL_TZ)
            self.assertEqual((moment.day, moment.hour, moment.minute), (28, 23, 30))

            stamp = datetime(2026, 4, 1, 10, 0, tzinfo=timezone.utc).timestamp()
            self.assertEqual(datetime.fromtimestamp(stamp, LOCAL_TZ).hour, 12)

    def test_real_clock_is_local(self) -> None:
        self.assertIs(RealClock().now().tzinfo, LOCAL_TZ)


class TestEpoch(unittest.TestCase):
    def test_to_epoch_ms(self) -> None:
        self.assertEqual(to_epoch_ms(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)), 1000)


if __name__ == "__main__":
    unittest.main()
