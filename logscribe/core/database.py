"""Persistent key/value substrate backed by a singleton SQLite connection."""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from logscribe.core.exceptions import DatabaseError

logger = logging.getLogger("logscribe")


class KeyValueStore(ABC):
    """Minimal persistent key/value contract.

    There is deliberately no enumeration primitive; callers that need to
    wipe everything must track their own keys.
    """

    @abstractmethod
    def raw_get(self, key: str) -> Optional[str]:
        """Return the stored value or None if absent."""
        ...

    @abstractmethod
    def raw_set(self, key: str, value: str) -> None:
        """Insert or overwrite a value."""
        ...

    @abstractmethod
    def raw_delete(self, key: str) -> None:
        """Remove a value. Deleting a missing key is not an error."""
        ...


class DatabaseManager(KeyValueStore):
    """SQLite-backed KeyValueStore shared by the whole process.

    One connection is opened on first construction; later constructions
    return the same instance and ignore their argument. An RLock serializes
    every statement because asyncio.to_thread workers may share the
    connection.
    """

    _instance: Optional['DatabaseManager'] = None
    _lock = threading.RLock()

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key         TEXT PRIMARY KEY,
            value       TEXT NOT NULL,
            updated_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __new__(cls, db_path: Optional[Path] = None):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self, db_path: Optional[Path] = None):
        if self._initialized:
            return

        if db_path is None:
            raise DatabaseError("db_path is required for first initialization")

        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            with self._lock:
                self._conn.execute(self.SCHEMA)
                self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise DatabaseError(f"Failed to initialize database: {e}")

        self._initialized = True
        logger.info(f"Cache database ready at {db_path}")

    def _execute(self, action: str, sql: str, params: tuple = (), commit: bool = False) -> sqlite3.Cursor:
        try:
            with self._lock:
                cursor = self._conn.execute(sql, params)
                if commit:
                    self._conn.commit()
                return cursor
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to {action}: {e}")

    def raw_get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._execute(
                f"read key {key}",
                "SELECT value FROM kv_store WHERE key = ?",
                (key,),
            ).fetchone()
        return row['value'] if row else None

    def raw_set(self, key: str, value: str) -> None:
        self._execute(
            f"store key {key}",
            """
            INSERT INTO kv_store (key, value)
            VALUES (?, ?)
            ON CONFLICT(key)
            DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, value),
            commit=True,
        )
        logger.debug(f"Stored key: {key}")

    def raw_delete(self, key: str) -> None:
        self._execute(f"delete key {key}", "DELETE FROM kv_store WHERE key = ?", (key,), commit=True)
        logger.debug(f"Deleted key: {key}")

    def close(self) -> None:
        with self._lock:
            conn = getattr(self, '_conn', None)
            if conn is None:
                return
            try:
                conn.close()
                logger.info("Database connection closed")
            except sqlite3.Error as e:
                logger.error(f"Error closing database connection: {e}")

    @classmethod
    def reset(cls) -> None:
        """Close the connection and drop the singleton (for testing)."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.close()
                cls._instance = None
