"""
Query router -- free-form parameterized statements.

POST /api/query   {"query": "... WHERE status = @param0", "params": ["Sold"]}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from agency_spine.api.deps import Access
from agency_spine.api.schemas import QueryRequest
from agency_spine.core.errors import ValidationError

router = APIRouter()


@router.post("/query")
def run_query(body: QueryRequest, access: Access) -> list[dict[str, Any]]:
    """Run ``query`` with positional or named ``params``."""
    if not body.query:
        raise ValidationError("Query parameter is required", field="query")
    return access.execute(body.query, body.params)
