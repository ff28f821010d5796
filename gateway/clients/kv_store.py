"""Key-value store backends for installation, state and client key records."""

from __future__ import annotations

import json
import sqlite3
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

Clock = Callable[[], float]


class KeyValueStore(ABC):
    """Minimal durable mapping with optional per-entry expiry.

    An entry past its TTL is indistinguishable from one that was deleted.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value or ``None`` when absent or expired."""

    @abstractmethod
    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Store a JSON-serialisable value, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; deleting an absent key is not an error."""


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store for tests and single-process development."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._items: Dict[str, Tuple[str, Optional[float]]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._items.get(key)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            self._items.pop(key, None)
            return None
        return json.loads(data)

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._items[key] = (json.dumps(value), expires_at)

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


class SQLiteKeyValueStore(KeyValueStore):
    """Store backed by a shared SQLite table, partitioned by namespace."""

    def __init__(self, db_path: str, namespace: str, clock: Clock = time.time) -> None:
        if not namespace:
            raise ValueError("A namespace is required")
        self._db_path = Path(db_path)
        self._namespace = namespace
        self._clock = clock
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_records (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    data TEXT NOT NULL,
                    expires_at REAL,
                    PRIMARY KEY (namespace, key)
                )
                """
            )

    def get(self, key: str) -> Optional[Any]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data, expires_at FROM kv_records WHERE namespace = ? AND key = ?",
                (self._namespace, key),
            ).fetchone()
            if not row:
                return None
            if row["expires_at"] is not None and row["expires_at"] <= self._clock():
                conn.execute(
                    "DELETE FROM kv_records WHERE namespace = ? AND key = ?",
                    (self._namespace, key),
                )
                return None
        return json.loads(row["data"])

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        data_json = json.dumps(value)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_records (namespace, key, data, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE SET
                    data = excluded.data,
                    expires_at = excluded.expires_at
                """,
                (self._namespace, key, data_json, expires_at),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM kv_records WHERE namespace = ? AND key = ?",
                (self._namespace, key),
            )


__all__ = ["KeyValueStore", "MemoryKeyValueStore", "SQLiteKeyValueStore"]
