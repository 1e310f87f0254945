"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from agency_spine.core.errors import StoreConnectionError, StoreError

from .base import DatabaseAdapter
from .types import DatabaseType, StatementResult


def _bindable(value: Any) -> Any:
    """Convert scalars sqlite3 has no native adapter for."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-process deployments

    One connection is shared by every caller; statements are serialized
    with a lock because a sqlite3 connection must not be used from two
    threads at once.
    """

    db_type = DatabaseType.SQLITE

    def __init__(self, path: str = ":memory:", *, timeout: float = 5.0):
        super().__init__()
        self._path = path
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def connect(self) -> None:
        """Connect to SQLite database."""
        if self._conn is not None:
            return

        uri = self._path.startswith("file:")
        if not uri and self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(
                self._path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise StoreConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

        self._conn = conn
        self._connected = True

    def disconnect(self) -> None:
        """Close SQLite connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self._connected = False

    def run(self, sql: str, params: Mapping[str, Any] | None = None) -> StatementResult:
        """Execute one statement and commit."""
        bound = {key: _bindable(value) for key, value in (params or {}).items()}
        with self._lock:
            # disconnect() can run after a drain timeout; check under the lock.
            if self._conn is None:
                raise StoreConnectionError("SQLite adapter is not connected")
            try:
                cursor = self._conn.execute(sql, bound)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
                rowcount = cursor.rowcount
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(str(e), cause=e) from e
        return StatementResult(rows=rows, rowcount=rowcount)


__all__ = [
    "SQLiteAdapter",
]
