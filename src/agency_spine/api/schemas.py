"""
API schemas -- response envelopes and RFC 7807 errors.

List and query endpoints return bare row arrays (the row shape is the
table's); everything else is one of the models below.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from agency_spine.resources.types import ColumnInfo, MutationOutcome


class ErrorDetail(BaseModel):
    """Field-level error detail."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs» -- every non-2xx body."""

    type: str = Field(default="about:blank", description="Problem type URI")
    title: str = Field(description="Short summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Explanation (store message for store errors)")
    instance: str = Field(default="", description="Request URL")
    errors: list[ErrorDetail] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Store connectivity probe."""

    status: str = Field(description="connected | disconnected")
    database: str | None = Field(default=None, description="Database name")
    timestamp: str | None = Field(default=None, description="ISO-8601 probe time")
    error: str | None = Field(default=None, description="Failure message when disconnected")


class TableSchema(BaseModel):
    """One entry of ``GET /api/tables``."""

    table_name: str


class ColumnSchema(BaseModel):
    """One column of ``GET /api/tables/{name}/structure``."""

    column_name: str
    data_type: str
    is_nullable: str = Field(description="YES | NO")

    @classmethod
    def from_info(cls, info: ColumnInfo) -> ColumnSchema:
        return cls(**info.to_dict())


class MutationResponse(BaseModel):
    """Insert / update / delete outcome."""

    success: bool
    message: str
    affected_rows: int = 0

    @classmethod
    def from_outcome(cls, outcome: MutationOutcome) -> MutationResponse:
        return cls(**outcome.to_dict())


class QueryRequest(BaseModel):
    """Body of ``POST /api/query``."""

    query: str | None = Field(default=None, description="Statement with @name markers")
    params: list[Any] | dict[str, Any] | None = Field(
        default=None,
        description="Positional (param0, param1, ...) or named parameters",
    )
