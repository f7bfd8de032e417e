"""SQLite key-value storage for tracker snapshots."""

import logging
import sqlite3
from pathlib import Path

from tabtree import config
from tabtree.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class KeyValueStore:
    """SQLite-backed blob storage keyed by name."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or config.DB_PATH
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(str(self.db_path))
                self._conn.row_factory = sqlite3.Row
                self._conn.executescript(SCHEMA)
            except (sqlite3.Error, OSError) as e:
                self._conn = None
                raise PersistenceError(f"Cannot open store at {self.db_path}: {e}") from e
        return self._conn

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def get(self, key: str) -> str | None:
        """Get the value stored under a key."""
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed reading {key!r}: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        conn = self._get_conn()
        try:
            conn.execute(
                """INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, datetime('now'))""",
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed writing {key!r}: {e}") from e
        logger.debug("Stored %d bytes under %s", len(value), key)

    def delete(self, key: str) -> bool:
        """Delete a key. Returns False when it was not present."""
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed deleting {key!r}: {e}") from e
        return cursor.rowcount > 0
