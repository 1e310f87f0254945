"""Database adapter base class.

Manifesto:
    All database adapters share a common lifecycle (connect/disconnect)
    and one execution primitive, ``run()``, that executes a single
    parameterized statement inside its own transaction and returns plain
    dict rows. Consumers never depend on a specific driver.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``run()``
    - Property-based dialect and connection-state introspection
    - Context-manager protocol for connection lifecycle
    - ``ping()`` built on the dialect's cheapest round trip

Tags:
    agency-spine, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from agency_spine.core.dialect import Dialect, get_dialect

from .types import DatabaseType, StatementResult


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    db_type: DatabaseType

    def __init__(self) -> None:
        self._connected = False
        self._dialect: Dialect = get_dialect(self.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database.

        Raises ``StoreConnectionError`` when the store cannot be reached.
        """
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def run(self, sql: str, params: Mapping[str, Any] | None = None) -> StatementResult:
        """Execute one statement in its own transaction.

        Commits on success, rolls back and raises ``StoreError`` on failure.
        """
        ...

    def ping(self) -> None:
        """Round trip to the store; raises on failure."""
        self.run(self._dialect.ping_query())

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "DatabaseAdapter",
]
