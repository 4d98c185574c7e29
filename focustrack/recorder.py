from __future__ import annotations

import logging
import random

from .db import SessionStore, StoreError, StoredSession
from .notifier import SessionNotifier, SessionSummary
from .timer import SessionCompleted


logger = logging.getLogger(__name__)


class SessionRecorder:
    """Store access for the timer and stats flows.

    Store failures are logged and turned into empty results so that neither
    a running timer nor a stats view ever fails because of the database.
    """

    def __init__(self, store: SessionStore, notifier: SessionNotifier | None = None) -> None:
        self.store = store
        self.notifier = notifier

    def init(self) -> bool:
        try:
            self.store.init()
        except StoreError as exc:
            logger.warning("session store init failed: %s", exc)
            return False
        return True

    def record(self, event: SessionCompleted) -> int | None:
        summary = SessionSummary.from_event(event)
        try:
            new_id = self.store.insert(event.duration_seconds, event.category, event.distractions)
        except StoreError as exc:
            logger.warning("session not recorded (%s): %s", summary.headline, exc)
            new_id = None
        else:
            logger.info("recorded session %d: %s", new_id, summary.headline)

        if self.notifier is not None:
            self.notifier.notify_session(summary)
        return new_id

    def load(self) -> list[StoredSession]:
        try:
            return self.store.query_all()
        except StoreError as exc:
            logger.warning("could not load sessions: %s", exc)
            return []

    def clear(self) -> int:
        try:
            return self.store.clear_all()
        except StoreError as exc:
            logger.warning("could not clear sessions: %s", exc)
            return 0

    def seed(self, count: int = 30, rng: random.Random | None = None) -> int:
        try:
            return self.store.seed_sample(count, rng=rng)
        except StoreError as exc:
            logger.warning("could not seed sample sessions: %s", exc)
            return 0
