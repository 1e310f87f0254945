"""
Tables router -- generic CRUD over every resource of the store.

GET    /api/tables
GET    /api/tables/{name}/structure
GET    /api/tables/{name}?field=value&...
POST   /api/tables/{name}
PUT    /api/tables/{name}/{id}?id_field=
DELETE /api/tables/{name}/{id}?id_field=

Every query-string pair of the list endpoint is an equality filter; they
are ANDed. Unknown tables or columns come back as 400. The row identifier
is the rest of the path after the table name, so a percent-encoded ``/``
in an id reaches the store intact.

Tags:
    agency-spine, api, crud, resources

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Query, Request, status

from agency_spine.api.deps import Access
from agency_spine.api.schemas import ColumnSchema, MutationResponse, TableSchema
from agency_spine.resources.protocol import DEFAULT_ID_FIELD

router = APIRouter(prefix="/tables")


@router.get("", response_model=list[TableSchema])
def list_tables(access: Access):
    """Base tables of the store."""
    return [TableSchema(table_name=name) for name in access.list_resources()]


@router.get("/{name}/structure", response_model=list[ColumnSchema])
def table_structure(name: str, access: Access):
    """Column name, data type and nullability."""
    return [ColumnSchema.from_info(info) for info in access.describe(name)]


@router.get("/{name}")
def list_rows(name: str, request: Request, access: Access) -> list[dict[str, Any]]:
    """Rows of ``name`` matching every query-string filter."""
    filters = dict(request.query_params)
    return access.list(name, filters)


@router.post("/{name}", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
def insert_row(name: str, access: Access, record: dict[str, Any] = Body(...)):
    """Insert one row built from the JSON body."""
    return MutationResponse.from_outcome(access.insert(name, record))


@router.put("/{name}/{id:path}", response_model=MutationResponse)
def update_row(
    name: str,
    id: str,
    access: Access,
    record: dict[str, Any] = Body(...),
    id_field: str = Query(DEFAULT_ID_FIELD, description="Column that identifies the row"),
):
    """Update the rows where ``id_field`` equals ``id``."""
    return MutationResponse.from_outcome(access.update(name, id, record, id_field=id_field))


@router.delete("/{name}/{id:path}", response_model=MutationResponse)
def delete_row(
    name: str,
    id: str,
    access: Access,
    id_field: str = Query(DEFAULT_ID_FIELD, description="Column that identifies the row"),
):
    """Delete the rows where ``id_field`` equals ``id``."""
    return MutationResponse.from_outcome(access.delete(name, id, id_field=id_field))
