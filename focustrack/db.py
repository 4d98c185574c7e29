from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, tzinfo
import logging
import os
from pathlib import Path
import random
import sqlite3
from threading import Lock
from typing import Iterator

from .clock import LOCAL_TZ, Clock, RealClock, to_epoch_ms


logger = logging.getLogger(__name__)

CATEGORIES = ("Study", "Coding", "Project", "Reading")
UNCATEGORIZED = "Uncategorized"

DAY_MS = 24 * 60 * 60 * 1000

_MIGRATIONS = (
    "ALTER TABLE timer_history ADD COLUMN category TEXT",
    "ALTER TABLE timer_history ADD COLUMN distractions INTEGER DEFAULT 0",
)


class StoreError(Exception):
    """Raised when the session database cannot be read or written."""


@dataclass(frozen=True)
class StoredSession:
    id: int
    duration_seconds: int
    timestamp_ms: int
    category: str | None
    distractions: int

    def completed_at(self, tz: tzinfo | None = None) -> datetime:
        return datetime.fromtimestamp(self.timestamp_ms / 1000, tz=tz or LOCAL_TZ)


class SessionStore:
    def __init__(
        self,
        db_path: Path,
        clock: Clock | None = None,
        journal_mode: str | None = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.clock = clock or RealClock()
        raw_mode = (journal_mode or os.getenv("FOCUSTRACK_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        self._conn: sqlite3.Connection | None = None
        self._lock = Lock()

    def __enter__(self) -> SessionStore:
        self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        with self._lock:
            if self._conn is not None:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._apply_journal_mode(conn)
                conn.execute("PRAGMA synchronous=NORMAL")
            except (OSError, sqlite3.Error) as exc:
                raise StoreError(f"cannot open {self.db_path}: {exc}") from exc
            self._conn = conn

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    def init(self) -> None:
        self.open()
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS timer_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    duration INTEGER NOT NULL,
                    timestamp INTEGER NOT NULL,
                    category TEXT,
                    distractions INTEGER DEFAULT 0
                )
                """
            )
            for statement in _MIGRATIONS:
                try:
                    conn.execute(statement)
                    logger.info("migrated timer_history: %s", statement)
                except sqlite3.OperationalError as exc:
                    if "duplicate column" not in str(exc).lower():
                        raise
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_timer_history_timestamp
                ON timer_history(timestamp)
                """
            )

    def insert(self, duration_seconds: int, category: str | None, distractions: int) -> int:
        return self._insert_at(
            to_epoch_ms(self.clock.now()),
            duration_seconds,
            category,
            distractions,
        )

    def query_all(self) -> list[StoredSession]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT id, duration, timestamp, category, distractions "
                "FROM timer_history "
                "ORDER BY timestamp DESC, id DESC"
            ).fetchall()

        items: list[StoredSession] = []
        for row in rows:
            items.append(
                StoredSession(
                    id=int(row["id"]),
                    duration_seconds=int(row["duration"]),
                    timestamp_ms=int(row["timestamp"]),
                    category=row["category"],
                    distractions=int(row["distractions"] or 0),
                )
            )
        return items

    def clear_all(self) -> int:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM timer_history")
            deleted = max(0, cursor.rowcount)
        logger.info("cleared %d session(s)", deleted)
        return deleted

    def seed_sample(self, n: int = 30, rng: random.Random | None = None) -> int:
        """Insert ``n`` synthetic sessions spread over the last seven days."""
        gen = rng or random.Random()
        now_ms = to_epoch_ms(self.clock.now())
        count = max(0, int(n))
        for _ in range(count):
            days_ago = gen.randrange(7)
            timestamp = now_ms - days_ago * DAY_MS - gen.randrange(DAY_MS)
            self._insert_at(
                timestamp,
                gen.randrange(60 * 60),
                gen.choice(CATEGORIES),
                gen.randrange(5),
            )
        logger.info("seeded %d sample session(s)", count)
        return count

    def _insert_at(
        self,
        timestamp_ms: int,
        duration_seconds: int,
        category: str | None,
        distractions: int,
    ) -> int:
        clean_category = (category or "").strip() or None
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO timer_history (duration, timestamp, category, distractions)
                VALUES (?, ?, ?, ?)
                """,
                (
                    int(max(0, duration_seconds)),
                    int(timestamp_ms),
                    clean_category,
                    int(max(0, distractions)),
                ),
            )
            new_id = int(cursor.lastrowid)
        logger.debug(
            "inserted session id=%d duration=%d category=%s distractions=%d",
            new_id,
            duration_seconds,
            clean_category,
            distractions,
        )
        return new_id

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                raise StoreError("session store is not open")
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc


def default_db_path() -> Path:
    env_path = os.getenv("FOCUSTRACK_DB", "").strip()
    if env_path:
        return Path(env_path)
    return Path(__file__).resolve().parent / "data" / "focustrack.sqlite"
