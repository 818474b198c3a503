# =============================================================================
# tracker_core/offline/local_store.py
# Local Persistent Key-Value Store
# =============================================================================
"""
Key-value stores that hold the offline cache and the pending-sync queue.

Values are plain strings (the callers store JSON text). Two
implementations:

- InMemoryKeyValueStore: dict-backed, for tests and throwaway sessions
- SQLiteKeyValueStore: a single `app_settings` table in a local SQLite file,
  so queued writes survive an app restart
"""

from __future__ import annotations
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable
import logging

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value capability used by OfflineStorage."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteKeyValueStore:
    """
    KeyValueStore persisted in SQLite.

    One connection per thread; the connectivity probe thread and the
    Streamlit script thread may both touch the store.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to the SQLite database file (created if missing)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Create the key-value table if needed."""
        if self._initialized:
            return

        with self.transaction() as conn:
            conn.execute(self.SCHEMA)

        self._initialized = True
        logger.info(f"Local key-value store initialized at: {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        self.initialize()
        row = self._get_connection().execute(
            "SELECT value FROM app_settings WHERE key = ?", [key]
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO app_settings (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, value, datetime.now().isoformat()],
            )

    def remove(self, key: str) -> None:
        self.initialize()
        with self.transaction() as conn:
            conn.execute("DELETE FROM app_settings WHERE key = ?", [key])

    def close(self) -> None:
        """Close this thread's connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
