# Vault - Key/Value Persistence
#
# The engine persists through an opaque get/set/clear store with three
# well-known keys. Two implementations:
#   - MemoryStore: dict-backed, for tests and throwaway sessions
#   - SQLiteStore: one kv_store table, JSON-encoded values, WAL mode
#
# Neither offers transactions across calls. A read followed by a write
# from two callers at once resolves last-write-wins.

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from ..core.db import connect as db_connect
from .errors import StorageFailure

logger = logging.getLogger(__name__)

# Well-known keys
PASSWORDS_KEY = "passwords"
SETTINGS_KEY = "settings"
MASTER_PASSWORD_VERIFIED_KEY = "masterPasswordVerified"


class KeyValueStore(Protocol):
    """Minimal persistence primitive the vault engine depends on."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryStore:
    """In-process store. Values are deep-copied through JSON on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageFailure(f"Value for {key!r} is not JSON serializable") from exc

    def clear(self) -> None:
        self._data.clear()

    def keys(self):
        return list(self._data)


class SQLiteStore:
    """SQLite-backed key/value store.

    Every call opens its own connection and closes it before returning.

    Args:
        db_path: Path to SQLite file. Defaults to the configured db_path.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        if db_path is None:
            from ..config import get_config

            db_path = get_config().db_path
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_database()
        except (OSError, sqlite3.Error) as exc:
            raise StorageFailure(f"Cannot open store at {self.db_path}") from exc

    def _init_database(self):
        with closing(db_connect(self.db_path)) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        return db_connect(self.db_path, row_factory=True)

    def get(self, key: str) -> Optional[Any]:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageFailure(f"Failed to read {key!r}") from exc

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as exc:
            raise StorageFailure(f"Stored value for {key!r} is corrupt") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageFailure(f"Value for {key!r} is not JSON serializable") from exc

        now = datetime.now(timezone.utc).isoformat()
        try:
            with closing(self._connect()) as conn:
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (key, encoded, now),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageFailure(f"Failed to write {key!r}") from exc

    def clear(self) -> None:
        try:
            with closing(self._connect()) as conn:
                conn.execute("DELETE FROM kv_store")
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageFailure("Failed to clear store") from exc
        logger.info("Cleared key/value store at %s", self.db_path)
