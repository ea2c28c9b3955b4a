"""Upsert-by-identifier storage for restaurant records."""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from loguru import logger


class RestaurantRepository(Protocol):
    def upsert(self, identifier: str, record: dict) -> None:
        ...

    def list(self) -> List[dict]:
        ...

    def get(self, identifier: str) -> Optional[dict]:
        ...


class InMemoryRestaurantRepository:
    """Dictionary-backed repository; insertion order is preserved."""

    def __init__(self) -> None:
        self._records: Dict[str, dict] = {}

    def upsert(self, identifier: str, record: dict) -> None:
        self._records[identifier] = dict(record)

    def list(self) -> List[dict]:
        return [dict(r) for r in self._records.values()]

    def get(self, identifier: str) -> Optional[dict]:
        record = self._records.get(identifier)
        return dict(record) if record is not None else None


class SqliteRestaurantRepository:
    """
    SQLite document table keyed by restaurant id.

    One connection is held for the life of the repository. Calls arrive from
    worker threads (``asyncio.to_thread``), so access is serialised with a lock.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if str(self._path) != ":memory:":
                self._path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._path), check_same_thread=False)
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS restaurants ("
                "id TEXT PRIMARY KEY, "
                "record TEXT NOT NULL, "
                "updated_at TEXT DEFAULT CURRENT_TIMESTAMP)"
            )
            self._conn.commit()
            logger.debug("opened restaurant store at {}", self._path)
        return self._conn

    def upsert(self, identifier: str, record: dict) -> None:
        payload = json.dumps(record, ensure_ascii=False)
        with self._lock:
            conn = self._connection()
            conn.execute(
                "INSERT INTO restaurants (id, record) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET record = excluded.record, "
                "updated_at = CURRENT_TIMESTAMP",
                (identifier, payload),
            )
            conn.commit()

    def list(self) -> List[dict]:
        with self._lock:
            cur = self._connection().execute("SELECT record FROM restaurants ORDER BY rowid")
            rows = cur.fetchall()
        return [json.loads(row[0]) for row in rows]

    def get(self, identifier: str) -> Optional[dict]:
        with self._lock:
            cur = self._connection().execute(
                "SELECT record FROM restaurants WHERE id = ?", (identifier,)
            )
            row = cur.fetchone()
        return json.loads(row[0]) if row else None

    def close(self) -> None:
        """Close the connection if open."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "SqliteRestaurantRepository":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
