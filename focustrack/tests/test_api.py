from __future__ import annotations

from datetime import datetime, timezone
import unittest

from focustrack import __version__
from focustrack.clock import FakeClock, FakeScheduler
from focustrack.db import SessionStore
from focustrack.tests.test_helpers import local_tmp_dir


class TestAPI(unittest.TestCase):
    def setUp(self) -> None:
        try:
            from fastapi.testclient import TestClient  # noqa: F401
            from focustrack.api.app import create_app  # noqa: F401
        except Exception as exc:  # pragma: no cover
            self.skipTest(f"fastapi test client unavailable: {exc}")

    def _client(self, tmp, clock, scheduler):
        from fastapi.testclient import TestClient

        from focustrack.api.app import create_app

        app = create_app(db_path=tmp / "data" / "focustrack.sqlite", clock=clock, scheduler=scheduler)
        return TestClient(app)

    def test_health_meta_sessions_and_openapi(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "data" / "focustrack.sqlite"
            clock = FakeClock(start=datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc))
            with SessionStore(db_path, clock=clock) as store:
                store.insert(60, "api", 1)

            with self._client(tmp, clock, FakeScheduler(clock=clock)) as client:
                health = client.get("/api/v1/health")
                self.assertEqual(health.status_code, 200)
                self.assertEqual(health.json().get("status"), "ok")

                meta = client.get("/api/v1/meta")
                self.assertEqual(meta.status_code, 200)
                self.assertEqual(meta.json().get("db_path"), str(db_path))
                self.assertIn("Study", meta.json()["categories"])

                sessions = client.get("/api/v1/sessions")
                self.assertEqual(sessions.status_code, 200)
                items = sessions.json()
                self.assertEqual(len(items), 1)
                self.assertEqual(items[0]["category"], "api")
                self.assertEqual(items[0]["distractions"], 1)

                openapi = client.get("/openapi.json")
                self.assertEqual(openapi.status_code, 200)
                paths = openapi.json().get("paths", {})
                self.assertIn("/api/v1/timer/stream", paths)
                self.assertEqual(openapi.json()["info"]["version"], __version__)
                self.assertEqual(meta.json()["version"], __version__)

    def test_timer_flow_records_session_and_updates_stats(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc))
            scheduler = FakeScheduler(clock=clock)
            with self._client(tmp, clock, scheduler) as client:
                state = client.post("/api/v1/timer/configure", json={"delta_minutes": -20}).json()
                self.assertEqual(state["configured_duration_seconds"], 300)

                state = client.post("/api/v1/timer/category", json={"category": "Coding"}).json()
                self.assertEqual(state["category"], "Coding")

                state = client.post("/api/v1/timer/start").json()
                self.assertTrue(state["accepted"])
                self.assertEqual(state["phase"], "running")

                scheduler.advance(60)
                state = client.post("/api/v1/timer/lifecycle", json={"state": "background"}).json()
                self.assertTrue(state["accepted"])
                self.assertEqual(state["phase"], "paused")
                self.assertEqual(state["distraction_count"], 1)
                self.assertEqual(state["app_state"], "background")

                state = client.post("/api/v1/timer/lifecycle", json={"state": "inactive"}).json()
                self.assertFalse(state["accepted"])
                self.assertEqual(state["distraction_count"], 1)

                client.post("/api/v1/timer/lifecycle", json={"state": "foreground"})
                client.post("/api/v1/timer/start")
                scheduler.advance(240)

                state = client.get("/api/v1/timer/state").json()
                self.assertEqual(state["phase"], "idle")
                self.assertEqual(state["remaining_seconds"], 300)
                self.assertEqual(state["last_session"]["duration_seconds"], 300)
                self.assertEqual(state["last_session"]["distractions"], 1)

                stats = client.get("/api/v1/stats").json()
                self.assertEqual(stats["totals"]["today_focus_seconds"], 300)
                self.assertEqual(stats["totals"]["today_distractions"], 1)
                self.assertEqual(stats["categories"], {"Coding": 300})
                self.assertEqual(len(stats["weekly"]), 7)
                self.assertEqual(stats["weekly"][-1]["label"], "13/2")
                self.assertEqual(stats["weekly"][-1]["total_minutes"], 5.0)

    def test_invalid_operations_are_not_errors(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock()
            with self._client(tmp, clock, FakeScheduler(clock=clock)) as client:
                pause = client.post("/api/v1/timer/pause")
                self.assertEqual(pause.status_code, 200)
                self.assertFalse(pause.json()["accepted"])

                client.post("/api/v1/timer/start")
                client.post("/api/v1/timer/reset")
                self.assertEqual(client.get("/api/v1/sessions").json(), [])

                bad = client.post("/api/v1/timer/lifecycle", json={"state": "asleep"})
                self.assertEqual(bad.status_code, 422)

    def test_seed_and_clear_require_confirmation(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock()
            with self._client(tmp, clock, FakeScheduler(clock=clock)) as client:
                seeded = client.post("/api/v1/sessions/seed", json={"count": 12})
                self.assertEqual(seeded.json()["count"], 12)
                self.assertEqual(len(client.get("/api/v1/sessions").json()), 12)

                refused = client.delete("/api/v1/sessions")
                self.assertEqual(refused.status_code, 400)

                cleared = client.delete("/api/v1/sessions", params={"confirm": "true"})
                self.assertEqual(cleared.json()["count"], 12)
                self.assertEqual(client.get("/api/v1/sessions").json(), [])


if __name__ == "__main__":
    unittest.main()
