"""Resource Access Protocol -- uniform CRUD over any named table.

Manifesto:
    Every back-office screen (Properties, Clients, Agents, Contracts,
    Payments, ...) reads and writes its table the same way. Instead of one
    repository per entity, ``ResourceAccess`` takes the resource name, a
    filter map and a record payload as data and builds one parameterized
    statement per call.

    - **Values are always bound:** filter values, record fields and the
      identifier value travel as driver parameters, never as SQL text
    - **Identifiers are allow-listed:** table and column names are resolved
      through ``SchemaCatalog`` and quoted by the dialect
    - **Typed failures, no retries:** ``ValidationError`` before the store is
      touched, ``StoreError`` / ``StoreConnectionError`` from the store
    - **Missing rows are outcomes:** delete of an unknown id returns
      ``success=False``; update reports ``affected_rows``

Architecture:
    ::

        ResourceAccess
        ├── list(resource, filters)          SELECT * ... WHERE a = :f0 AND b = :f1
        ├── insert(resource, record)         INSERT INTO ... VALUES (:v0, ...)
        ├── update(resource, id, record)     UPDATE ... SET a = :v0 WHERE id = :id
        ├── delete(resource, id)             DELETE FROM ... WHERE id = :id
        ├── count(resource)                  SELECT COUNT(*) AS count
        ├── execute(statement, params)       free-form, @name markers
        ├── list_resources()                 base tables
        └── describe(resource)               column metadata
                │
                ▼
        StoreClient.run(sql, params)

Examples:
    >>> access = ResourceAccess(store)
    >>> access.insert("Properties", {"address": "123 Oak", "price": 450000, "status": "Available"})
    MutationOutcome(success=True, message='Record inserted into Properties', affected_rows=1)
    >>> [p["address"] for p in access.list("Properties", {"status": "Available"})]
    ['123 Oak']

Tags:
    agency-spine, crud, resource, parameterized-sql

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from agency_spine.core.errors import ValidationError
from agency_spine.core.logging import get_logger
from agency_spine.core.store import StoreClient

from .catalog import SchemaCatalog
from .statements import compile_statement
from .types import ColumnInfo, Filters, MutationOutcome, Record, Scalar, StatementParams

logger = get_logger(__name__)

DEFAULT_ID_FIELD = "id"


def _require_record(record: Mapping[str, Any] | None, resource: str) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise ValidationError(
            "Record payload must be an object",
            field="record",
            value=record,
        ).with_context(resource=resource)
    if not record:
        raise ValidationError(
            "Record payload is empty",
            field="record",
        ).with_context(resource=resource)
    return record


class ResourceAccess:
    """Generic CRUD over the tables of one store."""

    def __init__(self, store: StoreClient, catalog: SchemaCatalog | None = None):
        self._store = store
        self._catalog = catalog or SchemaCatalog(store)

    @property
    def store(self) -> StoreClient:
        return self._store

    @property
    def catalog(self) -> SchemaCatalog:
        return self._catalog

    # ── Identifier helpers ───────────────────────────────────────────────

    def _q(self, identifier: str) -> str:
        dialect = self._store.dialect
        return dialect.escape_statement_text(dialect.quote_identifier(identifier))

    def _p(self, name: str) -> str:
        return self._store.dialect.named_placeholder(name)

    def _column(self, table: str, column: str) -> str:
        return self._q(self._catalog.resolve_column(table, column))

    # ── Reads ────────────────────────────────────────────────────────────

    def list(
        self,
        resource: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
    ) -> list[Record]:
        """All rows of ``resource`` whose fields equal every filter value."""
        table = self._catalog.resolve_resource(resource)
        sql = f"SELECT * FROM {self._q(table)}"
        params: dict[str, Scalar] = {}

        clauses = []
        for index, (field, value) in enumerate((filters or {}).items()):
            name = f"f{index}"
            clauses.append(f"{self._column(table, field)} = {self._p(name)}")
            params[name] = value
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        if order_by:
            sql += f" ORDER BY {self._column(table, order_by)}"

        rows = self._store.run(sql, params).rows
        logger.debug("resource_listed", resource=table, filters=len(params), rows=len(rows))
        return rows

    def count(self, resource: str) -> int:
        """Number of rows in ``resource``."""
        table = self._catalog.resolve_resource(resource)
        rows = self._store.run(f"SELECT COUNT(*) AS count FROM {self._q(table)}").rows
        return int(rows[0]["count"]) if rows else 0

    # ── Mutations ────────────────────────────────────────────────────────

    def insert(self, resource: str, record: Record) -> MutationOutcome:
        """Append one row built from every field of ``record``."""
        table = self._catalog.resolve_resource(resource)
        record = _require_record(record, table)

        columns, markers, params = [], [], {}
        for index, (field, value) in enumerate(record.items()):
            name = f"v{index}"
            columns.append(self._column(table, field))
            markers.append(self._p(name))
            params[name] = value

        sql = f"INSERT INTO {self._q(table)} ({', '.join(columns)}) VALUES ({', '.join(markers)})"
        result = self._store.run(sql, params)
        affected = max(result.rowcount, 0)
        logger.info("resource_inserted", resource=table, fields=len(columns))
        return MutationOutcome(
            success=True,
            message=f"Record inserted into {table}",
            affected_rows=affected,
        )

    def update(
        self,
        resource: str,
        id: Scalar,
        record: Record,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> MutationOutcome:
        """Set the fields of ``record`` on rows where ``id_field = id``.

        Matching nothing is still a success; check ``affected_rows``.
        """
        table = self._catalog.resolve_resource(resource)
        record = _require_record(record, table)
        key = self._column(table, id_field)

        assignments, params = [], {}
        for index, (field, value) in enumerate(record.items()):
            name = f"v{index}"
            assignments.append(f"{self._column(table, field)} = {self._p(name)}")
            params[name] = value
        params["id"] = id

        sql = f"UPDATE {self._q(table)} SET {', '.join(assignments)} WHERE {key} = {self._p('id')}"
        affected = max(self._store.run(sql, params).rowcount, 0)
        logger.info("resource_updated", resource=table, id_field=id_field, affected_rows=affected)
        if affected == 0:
            return MutationOutcome(success=True, message="No record found", affected_rows=0)
        return MutationOutcome(
            success=True,
            message=f"Record updated in {table}",
            affected_rows=affected,
        )

    def delete(
        self,
        resource: str,
        id: Scalar,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> MutationOutcome:
        """Remove rows where ``id_field = id``; never raises for a missing row."""
        table = self._catalog.resolve_resource(resource)
        key = self._column(table, id_field)

        sql = f"DELETE FROM {self._q(table)} WHERE {key} = {self._p('id')}"
        affected = max(self._store.run(sql, {"id": id}).rowcount, 0)
        logger.info("resource_deleted", resource=table, id_field=id_field, affected_rows=affected)
        if affected > 0:
            return MutationOutcome(
                success=True,
                message="Record deleted successfully",
                affected_rows=affected,
            )
        return MutationOutcome(success=False, message="No record found", affected_rows=0)

    # ── Free-form ────────────────────────────────────────────────────────

    def execute(self, statement: str, params: StatementParams = None) -> list[Record]:
        """Run a caller-written statement with ``@name`` markers.

        Statements without a result set return ``[]``.
        """
        if not isinstance(statement, str) or not statement.strip():
            raise ValidationError("Query parameter is required", field="query")
        sql, bound = compile_statement(statement, params, self._store.dialect)
        rows = self._store.run(sql, bound).rows
        logger.debug("statement_run", params=len(bound), rows=len(rows))
        return rows

    # ── Metadata ─────────────────────────────────────────────────────────

    def list_resources(self) -> list[str]:
        """Base tables of the store, freshly read."""
        return self._catalog.tables(reload=True)

    def describe(self, resource: str) -> list[ColumnInfo]:
        """Column name, data type and nullability of ``resource``."""
        return self._catalog.columns(resource)


__all__ = [
    "DEFAULT_ID_FIELD",
    "ResourceAccess",
]
