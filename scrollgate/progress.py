"""Progress persistence over a simple key-value store."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from scrollgate.models import Progress

logger = logging.getLogger(__name__)

DEFAULT_KEY = "mysteryGameProgress"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store, for tests and throwaway sessions."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqliteKeyValueStore:
    """SQLite-backed key-value table."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Store not initialized. Call init_db() first.")
        return self._conn

    def init_db(self) -> None:
        """Create database and table."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(SCHEMA_SQL)
        logger.info("Progress store initialized at %s", self.db_path)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def get(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.conn.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                   updated_at = datetime('now')""",
            (key, value),
        )
        self.conn.commit()

    def delete(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()


class ProgressStore:
    """Loads and saves one Progress record under a fixed key."""

    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_KEY) -> None:
        self.kv = kv
        self.key = key

    def load(self) -> Progress:
        """Return saved progress, or defaults when missing or corrupt.

        A corrupt record is deleted so the next save starts clean.
        """
        raw = self.kv.get(self.key)
        if raw is None:
            return Progress()
        try:
            return Progress.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError):
            logger.warning("Discarding corrupt progress record under %r", self.key, exc_info=True)
            self.kv.delete(self.key)
            return Progress()

    def save(self, progress: Progress) -> None:
        self.kv.set(self.key, progress.to_record())
        logger.debug(
            "Saved progress: offset=%d completed=%s",
            progress.scroll_position, sorted(progress.completed_puzzles),
        )
