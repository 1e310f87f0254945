"""PostgreSQL database adapter (psycopg 3 + psycopg_pool)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from agency_spine.core.errors import StoreConnectionError, StoreError
from agency_spine.core.logging import get_logger
from agency_spine.core.settings import StoreSettings

from .base import DatabaseAdapter
from .types import DatabaseType, StatementResult

logger = get_logger(__name__)


def build_conninfo(settings: StoreSettings) -> str:
    """libpq connection string for the configured store.

    Keep-alive probes and the statement timeout are driver-level settings;
    the encrypt / trust toggles collapse into ``sslmode``.
    """
    extra: dict[str, Any] = {}
    if settings.keep_alive:
        extra.update(keepalives=1, keepalives_idle=30, keepalives_interval=10, keepalives_count=3)
    else:
        extra["keepalives"] = 0
    if settings.statement_timeout_ms:
        extra["options"] = f"-c statement_timeout={settings.statement_timeout_ms}"

    return make_conninfo(
        host=settings.host,
        port=settings.port,
        dbname=settings.name,
        user=settings.user,
        password=settings.password or None,
        sslmode=settings.ssl_mode,
        connect_timeout=settings.connect_timeout,
        application_name="agency-spine",
        **extra,
    )


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    The pool is the process's single store handle: it is opened once by
    ``connect()`` and every statement borrows a connection from it.
    """

    db_type = DatabaseType.POSTGRESQL

    def __init__(self, settings: StoreSettings):
        super().__init__()
        self._settings = settings
        self._pool: ConnectionPool | None = None

    def connect(self) -> None:
        """Open the connection pool and wait for the first connection."""
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=build_conninfo(self._settings),
            min_size=self._settings.pool_min_size,
            max_size=max(self._settings.pool_min_size, self._settings.pool_max_size),
            kwargs={"row_factory": dict_row},
            open=False,
        )
        try:
            pool.open(wait=True, timeout=float(self._settings.connect_timeout))
        except (PoolTimeout, psycopg.Error) as e:
            pool.close()
            raise StoreConnectionError(
                f"Failed to connect to PostgreSQL at {self._settings.host}:{self._settings.port}: {e}",
                cause=e,
            ) from e

        self._pool = pool
        self._connected = True
        logger.debug(
            "postgres_pool_opened",
            host=self._settings.host,
            database=self._settings.name,
            min_size=self._settings.pool_min_size,
            max_size=self._settings.pool_max_size,
        )

    def disconnect(self) -> None:
        """Close PostgreSQL connection pool."""
        if self._pool is not None:
            self._pool.close()
            self._pool = None
            self._connected = False

    def run(self, sql: str, params: Mapping[str, Any] | None = None) -> StatementResult:
        """Execute one statement; the pool context commits or rolls back."""
        if self._pool is None:
            raise StoreConnectionError("PostgreSQL adapter is not connected")

        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, dict(params or {}))
                    rows = list(cur.fetchall()) if cur.description else []
                    return StatementResult(rows=rows, rowcount=cur.rowcount)
        except PoolTimeout as e:
            raise StoreConnectionError(f"No store connection available: {e}", cause=e) from e
        except psycopg.Error as e:
            raise StoreError(str(e), cause=e) from e


__all__ = [
    "PostgreSQLAdapter",
    "build_conninfo",
]
