"""
Health router -- store connectivity probe.

GET /api/health    200 {status: connected, database, timestamp}
                   503 {status: disconnected, error}
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from agency_spine.api.deps import Store
from agency_spine.api.schemas import HealthResponse
from agency_spine.core.errors import AgencyError
from agency_spine.core.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    responses={503: {"model": HealthResponse}},
)
def health(store: Store):
    """Round trip ``SELECT 1`` to the store."""
    try:
        store.ping()
    except AgencyError as e:
        logger.warning("store_health_failed", error=e.message)
        body = HealthResponse(status="disconnected", error=e.message)
        return JSONResponse(status_code=503, content=body.model_dump(exclude_none=True))

    return HealthResponse(
        status="connected",
        database=store.database_name,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
