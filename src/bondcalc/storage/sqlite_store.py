"""SQLite-backed key-value store.

Creates the database file, parent directories and table on first use.
Connections are thread-local; writes commit immediately.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
from pathlib import Path

from bondcalc.storage.errors import StorageBackendError
from bondcalc.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed store with thread-safe lazy initialization."""

    _CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS kv_records (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """

    _SELECT_SQL = "SELECT value FROM kv_records WHERE key = ?"

    _UPSERT_SQL = "INSERT OR REPLACE INTO kv_records (key, value) VALUES (?, ?)"

    _DELETE_SQL = "DELETE FROM kv_records WHERE key = ?"

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._local = threading.local()
        self._initialized = False
        self._init_lock = threading.Lock()

    @property
    def backend_name(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> str:
        return self._db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a thread-local database connection.

        Raises:
            StorageBackendError: If the database cannot be opened or created.
        """
        if not self._initialized:
            with self._init_lock:
                if not self._initialized:
                    self._ensure_database()
                    self._initialized = True

        conn = getattr(self._local, "conn", None)
        if conn is None:
            try:
                conn = sqlite3.connect(self._db_path, check_same_thread=False)
                self._local.conn = conn
            except sqlite3.Error as e:
                raise StorageBackendError(f"Failed to connect to store: {e}") from e
        return conn

    def _ensure_database(self) -> None:
        try:
            db_path = Path(self._db_path)
            if db_path.is_dir():
                raise StorageBackendError(f"Store path is a directory: {self._db_path}")
            db_path.parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(self._db_path)
            try:
                conn.execute(self._CREATE_TABLE_SQL)
                conn.commit()
            finally:
                conn.close()

            logger.info("Initialized key-value store at %s", self._db_path)
        except sqlite3.Error as e:
            raise StorageBackendError(f"Failed to initialize store: {e}") from e
        except OSError as e:
            raise StorageBackendError(f"Failed to create store directory: {e}") from e

    def get(self, key: str) -> str | None:
        try:
            row = self._get_connection().execute(self._SELECT_SQL, (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageBackendError(f"Failed to read record: {e}", key=key) from e
        return None if row is None else str(row[0])

    def set(self, key: str, value: str) -> None:
        try:
            conn = self._get_connection()
            conn.execute(self._UPSERT_SQL, (key, value))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageBackendError(f"Failed to write record: {e}", key=key) from e

    def delete(self, key: str) -> bool:
        try:
            conn = self._get_connection()
            cursor = conn.execute(self._DELETE_SQL, (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageBackendError(f"Failed to delete record: {e}", key=key) from e
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the thread-local database connection if open."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            with contextlib.suppress(sqlite3.Error):
                conn.close()
            self._local.conn = None
