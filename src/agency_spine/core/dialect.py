"""SQL dialect abstraction for the resource-agnostic statement builder.

The statement builder in ``agency_spine.resources`` never writes
backend-specific syntax itself. Everything that differs between SQLite and
PostgreSQL -- named placeholder style, identifier quoting, metadata queries,
literal ``%`` handling -- comes from a ``Dialect``.

Architecture::

    Statement builder
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = f"SELECT * FROM {d.quote_identifier(table)}"            │
    │  sql += f" WHERE {d.quote_identifier(col)} = {d.named('f0')}"  │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
          ┌──────────────────┐        ┌─────────────────────────┐
          │ SQLiteDialect    │        │ PostgreSQLDialect       │
          │ :f0              │        │ %(f0)s                  │
          │ sqlite_master    │        │ information_schema      │
          └──────────────────┘        └─────────────────────────┘

Examples:
    >>> d = SQLiteDialect()
    >>> d.named_placeholder("f0")
    ':f0'
    >>> d.quote_identifier('odd"name')
    '"odd""name"'

Guardrails:
    ❌ DON'T: Interpolate caller-supplied identifiers without allow-listing
    ✅ DO: Check against ``SchemaCatalog`` first, then ``quote_identifier``

    ❌ DON'T: Interpolate values at all
    ✅ DO: Bind every value through ``named_placeholder``
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from agency_spine.core.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment or full statement valid for the
    target database. Statements returned by the metadata helpers use named
    placeholders of the same dialect.
    """

    @property
    def name(self) -> str:
        """Dialect name (``'sqlite'``, ``'postgresql'``)."""
        ...

    def named_placeholder(self, name: str) -> str:
        """Named parameter marker for ``name``."""
        ...

    def quote_identifier(self, identifier: str) -> str:
        """Delimited identifier with embedded quotes escaped."""
        ...

    def escape_statement_text(self, text: str) -> str:
        """Escape literal statement text that the driver would otherwise
        treat as parameter syntax."""
        ...

    def list_tables_query(self) -> str:
        """Statement returning one ``table_name`` column of base tables."""
        ...

    def columns_query(self) -> str:
        """Statement returning ``column_name``, ``data_type``, ``is_nullable``
        for the table bound to the ``table`` parameter."""
        ...

    def ping_query(self) -> str:
        """Cheapest round-trip statement."""
        ...


class SQLiteDialect:
    """SQLite dialect -- ``:name`` placeholders, ``sqlite_master`` metadata."""

    @property
    def name(self) -> str:
        return "sqlite"

    def named_placeholder(self, name: str) -> str:
        return f":{name}"

    def quote_identifier(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def escape_statement_text(self, text: str) -> str:
        return text

    def list_tables_query(self) -> str:
        return (
            "SELECT name AS table_name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' "
            "ORDER BY name"
        )

    def columns_query(self) -> str:
        return (
            "SELECT name AS column_name, type AS data_type, "
            "CASE WHEN \"notnull\" = 1 OR pk > 0 THEN 'NO' ELSE 'YES' END AS is_nullable "
            "FROM pragma_table_info(:table) ORDER BY cid"
        )

    def ping_query(self) -> str:
        return "SELECT 1"


class PostgreSQLDialect:
    """PostgreSQL dialect -- ``%(name)s`` placeholders (psycopg), ``information_schema``.

    psycopg parses ``%`` in every statement executed with parameters, so
    literal percent signs are doubled by ``escape_statement_text``.
    """

    @property
    def name(self) -> str:
        return "postgresql"

    def named_placeholder(self, name: str) -> str:
        return f"%({name})s"

    def quote_identifier(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def escape_statement_text(self, text: str) -> str:
        return text.replace("%", "%%")

    def list_tables_query(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_type = 'BASE TABLE' "
            "ORDER BY table_name"
        )

    def columns_query(self) -> str:
        return (
            "SELECT column_name, data_type, is_nullable "
            "FROM information_schema.columns "
            "WHERE table_schema = current_schema() AND table_name = %(table)s "
            "ORDER BY ordinal_position"
        )

    def ping_query(self) -> str:
        return "SELECT 1"


_DIALECTS: dict[str, type] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return a dialect instance by backend name."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ConfigError(f"No SQL dialect for backend: {name}") from None


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
]
