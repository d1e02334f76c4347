"""
Key-Value Store - Persisted Review Counters
============================================

The policy engine only needs a tiny string map: numbers and strings under
namespaced keys. Two backends:

- InMemoryStore: process-local dict (tests, previews, simulations)
- SQLiteStore:   one `settings`-style table in a local SQLite file

FAILURE BEHAVIOR:
- Reads never raise. Missing, unreadable or corrupt values come back as None.
- Writes are best-effort. A failing write is logged and dropped.
"""

import math
import sqlite3
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional, Union
from contextlib import contextmanager

logger = logging.getLogger(__name__)

Value = Union[int, float, str]


def _to_number(raw) -> Optional[float]:
    """Parse a stored value as a number. Booleans, junk and nan/inf are not numbers."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw) if isinstance(raw, (int, float)) else float(str(raw).strip())
    except (ValueError, OverflowError):
        return None
    return value if math.isfinite(value) else None


class KeyValueStore(ABC):
    """
    Abstract base class for counter storage.
    Implement this interface to add new storage backends.
    """

    @abstractmethod
    def get_number(self, key: str) -> Optional[float]:
        """Return the numeric value under key, or None if absent/unreadable."""
        ...

    @abstractmethod
    def get_string(self, key: str) -> Optional[str]:
        """Return the string value under key, or None if absent/unreadable."""
        ...

    @abstractmethod
    def set(self, key: str, value: Value) -> None:
        """Store value under key."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key. Removing a missing key is a no-op."""
        ...

    def remove_many(self, keys: Iterable[str]) -> None:
        """Delete several keys as one unit. Backends override to make it atomic."""
        for key in keys:
            self.remove(key)


class InMemoryStore(KeyValueStore):
    """
    Dict-backed store.

    Usage:
        store = InMemoryStore({"review_gate.launchCount": 3})
        store.get_number("review_gate.launchCount")  # 3.0
    """

    def __init__(self, initial: Optional[Dict[str, Value]] = None):
        self._data: Dict[str, Value] = dict(initial or {})
        self._lock = threading.Lock()

    def get_number(self, key: str) -> Optional[float]:
        with self._lock:
            return _to_number(self._data.get(key))

    def get_string(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._data.get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: Value) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def remove_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def snapshot(self) -> Dict[str, Value]:
        """Copy of everything stored (for inspection)."""
        with self._lock:
            return dict(self._data)


class SQLiteStore(KeyValueStore):
    """
    SQLite-backed store.

    Usage:
        store = SQLiteStore("review_gate.db")
        store.init()
        store.set("review_gate.launchCount", 4)
    """

    def __init__(self, db_path: Union[str, Path] = "review_gate.db"):
        self.db_path = str(db_path)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self) -> bool:
        """Initialize the state table. Returns False if the file is unusable."""
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS review_state (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)
        except sqlite3.Error as e:
            logger.warning(f"Review state store unavailable at {self.db_path}: {e}")
            return False

        logger.info(f"Review state store initialized: {self.db_path}")
        return True

    def _read(self, key: str) -> Optional[str]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM review_state WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Failed to read '{key}', treating as absent: {e}")
            return None
        return row["value"] if row else None

    def get_number(self, key: str) -> Optional[float]:
        return _to_number(self._read(key))

    def get_string(self, key: str) -> Optional[str]:
        return self._read(key)

    def set(self, key: str, value: Value) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO review_state (key, value) VALUES (?, ?)",
                    (key, str(value))
                )
        except sqlite3.Error as e:
            logger.warning(f"Failed to write '{key}': {e}")

    def remove(self, key: str) -> None:
        self.remove_many([key])

    def remove_many(self, keys: Iterable[str]) -> None:
        """Delete all keys in a single transaction."""
        keys = list(keys)
        try:
            with self._get_connection() as conn:
                conn.executemany(
                    "DELETE FROM review_state WHERE key = ?",
                    [(key,) for key in keys]
                )
        except sqlite3.Error as e:
            logger.warning(f"Failed to remove {keys}: {e}")

    def dump(self, prefix: str = "") -> Dict[str, str]:
        """All stored rows whose key starts with prefix."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT key, value FROM review_state WHERE substr(key, 1, ?) = ? ORDER BY key",
                    (len(prefix), prefix)
                ).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"Failed to dump review state: {e}")
            return {}
        return {row["key"]: row["value"] for row in rows}
