"""Store client: the single owner of a process's store connection.

Manifesto:
    Nothing in agency-spine reaches the database through a module-level
    global. A ``StoreClient`` is built explicitly from ``StoreSettings``,
    connected explicitly, handed to whoever needs it and closed explicitly.
    Only one client may be live per process; building a second one while
    the first is open raises ``ConfigError``.

    ``close()`` is graceful: new operations are refused at once, operations
    already running are given ``drain_timeout`` seconds to finish, then the
    handle is released.

Architecture:
    ::

        StoreClient
        ├── adapter   DatabaseAdapter from the registry (sqlite / postgresql)
        ├── run()     tracked statement execution
        ├── ping()    SELECT 1 round trip
        └── close()   refuse → drain → disconnect

Examples:
    >>> store = StoreClient(StoreSettings(backend="sqlite", path=":memory:"))
    >>> store.connect()
    >>> store.run("SELECT 1 AS one").rows
    [{'one': 1}]
    >>> store.close()

Tags:
    agency-spine, store, lifecycle, connection

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from agency_spine.core.adapters import DatabaseAdapter, StatementResult, get_adapter
from agency_spine.core.dialect import Dialect
from agency_spine.core.errors import ConfigError, StoreConnectionError
from agency_spine.core.logging import get_logger
from agency_spine.core.settings import StoreSettings, get_store_settings

logger = get_logger(__name__)

_guard = threading.Lock()
_live_client: StoreClient | None = None


def _claim(client: StoreClient) -> None:
    global _live_client
    with _guard:
        if _live_client is not None:
            raise ConfigError(
                "A store client is already open in this process; close it first",
                context={"database": _live_client.database_name},
            )
        _live_client = client


def _release(client: StoreClient) -> None:
    global _live_client
    with _guard:
        if _live_client is client:
            _live_client = None


def reset_store_guard() -> None:
    """Forget the live client (for testing)."""
    global _live_client
    with _guard:
        _live_client = None


class StoreClient:
    """Explicitly constructed, explicitly closed owner of the store handle."""

    def __init__(
        self,
        settings: StoreSettings | None = None,
        *,
        adapter: DatabaseAdapter | None = None,
    ):
        self._settings = settings or get_store_settings()
        self._adapter = adapter if adapter is not None else get_adapter(self._settings)
        self._cond = threading.Condition()
        self._in_flight = 0
        self._closing = False
        self._closed = False
        _claim(self)

    # ── Introspection ────────────────────────────────────────────────────

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    @property
    def dialect(self) -> Dialect:
        return self._adapter.dialect

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    @property
    def database_name(self) -> str:
        """Name reported by health checks."""
        if self._adapter.dialect.name == "sqlite":
            return self._settings.path
        return self._settings.name

    @property
    def is_open(self) -> bool:
        return self._adapter.is_connected and not self._closing

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    # ── Lifecycle ────────────────────────────────────────────────────────

    def connect(self) -> None:
        """Open the store handle.

        A connection failure releases the process slot and is re-raised as
        ``StoreConnectionError``; the client cannot be reused afterwards.
        """
        if self._closed:
            raise StoreConnectionError("Store client has been closed")
        try:
            self._adapter.connect()
        except StoreConnectionError:
            self._closing = self._closed = True
            _release(self)
            logger.error("store_connect_failed", database=self.database_name)
            raise
        logger.info(
            "store_connected",
            backend=self._adapter.dialect.name,
            database=self.database_name,
        )

    def close(self) -> None:
        """Refuse new operations, drain in-flight ones, release the handle."""
        with self._cond:
            if self._closed:
                return
            self._closing = True
            drained = self._cond.wait_for(
                lambda: self._in_flight == 0,
                timeout=self._settings.drain_timeout,
            )
            abandoned = self._in_flight
            self._closed = True

        if not drained:
            logger.warning("store_drain_timeout", abandoned=abandoned)
        self._adapter.disconnect()
        _release(self)
        logger.info("store_closed", database=self.database_name)

    def __enter__(self) -> StoreClient:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Operations ───────────────────────────────────────────────────────

    @contextmanager
    def _operation(self) -> Iterator[None]:
        with self._cond:
            if self._closing:
                raise StoreConnectionError("Store client is closed")
            self._in_flight += 1
        try:
            yield
        finally:
            with self._cond:
                self._in_flight -= 1
                self._cond.notify_all()

    def run(self, sql: str, params: Mapping[str, Any] | None = None) -> StatementResult:
        """Execute one parameterized statement."""
        with self._operation():
            started = time.perf_counter()
            result = self._adapter.run(sql, params)
            logger.debug(
                "statement_executed",
                rows=len(result.rows),
                rowcount=result.rowcount,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return result

    def ping(self) -> None:
        """Cheapest round trip; raises ``StoreError`` / ``StoreConnectionError``."""
        with self._operation():
            self._adapter.ping()


__all__ = [
    "StoreClient",
    "reset_store_guard",
]
