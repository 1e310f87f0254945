"""Identifier allow-listing against the store's own metadata.

Resource names, column names, identifier fields and order columns arrive
from callers as plain strings. None of them can be bound as a parameter, so
each one is checked against the tables and columns the store reports before
it is quoted into a statement. A name the store does not know is a
``ValidationError``; no data statement runs.

Lookup is exact first, then case-insensitive, and always returns the
store's canonical spelling (``properties`` resolves to ``Properties``).
A miss reloads the metadata once, so tables created after the first lookup
are still found.
"""

from __future__ import annotations

import threading

from agency_spine.core.errors import ValidationError
from agency_spine.core.logging import get_logger
from agency_spine.core.store import StoreClient

from .types import ColumnInfo

logger = get_logger(__name__)


def _match(name: str, candidates: list[str]) -> str | None:
    if name in candidates:
        return name
    folded = name.casefold()
    for candidate in candidates:
        if candidate.casefold() == folded:
            return candidate
    return None


class SchemaCatalog:
    """Cached view of the store's base tables and their columns."""

    def __init__(self, store: StoreClient):
        self._store = store
        self._lock = threading.Lock()
        self._tables: list[str] | None = None
        self._columns: dict[str, list[ColumnInfo]] = {}

    def _load_tables(self) -> list[str]:
        rows = self._store.run(self._store.dialect.list_tables_query()).rows
        tables = [str(row["table_name"]) for row in rows]
        logger.debug("catalog_tables_loaded", count=len(tables))
        return tables

    def _load_columns(self, table: str) -> list[ColumnInfo]:
        rows = self._store.run(self._store.dialect.columns_query(), {"table": table}).rows
        return [
            ColumnInfo(
                name=str(row["column_name"]),
                data_type=str(row["data_type"] or ""),
                nullable=str(row["is_nullable"]).upper() == "YES",
            )
            for row in rows
        ]

    def tables(self, *, reload: bool = False) -> list[str]:
        """Base tables, in the store's order."""
        with self._lock:
            if reload or self._tables is None:
                self._tables = self._load_tables()
            return list(self._tables)

    def resolve_resource(self, name: str) -> str:
        """Canonical table name for ``name``."""
        if not isinstance(name, str) or not name:
            raise ValidationError("Resource name is required", field="resource", value=name)

        found = _match(name, self.tables())
        if found is None:
            found = _match(name, self.tables(reload=True))
        if found is None:
            raise ValidationError(f"Unknown resource: {name}", field="resource", value=name)
        return found

    def columns(self, resource: str) -> list[ColumnInfo]:
        """Column metadata for a resource (resolved first)."""
        table = self.resolve_resource(resource)
        with self._lock:
            if table not in self._columns:
                self._columns[table] = self._load_columns(table)
            return list(self._columns[table])

    def resolve_column(self, resource: str, column: str) -> str:
        """Canonical column name of ``column`` in ``resource``."""
        if not isinstance(column, str) or not column:
            raise ValidationError("Column name is required", field="column", value=column)

        table = self.resolve_resource(resource)
        found = _match(column, [c.name for c in self.columns(table)])
        if found is None:
            with self._lock:
                self._columns.pop(table, None)
            found = _match(column, [c.name for c in self.columns(table)])
        if found is None:
            raise ValidationError(
                f"Unknown column {column} in {table}",
                field="column",
                value=column,
            ).with_context(resource=table)
        return found


__all__ = [
    "SchemaCatalog",
]
