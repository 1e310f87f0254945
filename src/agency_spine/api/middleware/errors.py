"""
Error handlers -- map the typed error hierarchy to RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agency_spine.api.schemas import ErrorDetail, ProblemDetail
from agency_spine.core.errors import (
    AgencyError,
    ConfigError,
    StoreConnectionError,
    StoreError,
    ValidationError,
    categorize_error,
)
from agency_spine.core.logging import get_logger

logger = get_logger(__name__)

# ── Error type → HTTP status mapping ─────────────────────────────────────

ERROR_TYPE_TO_STATUS: dict[type[AgencyError], int] = {
    ValidationError: 400,
    StoreConnectionError: 503,
    StoreError: 500,
    ConfigError: 500,
}

STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def status_for_error(exc: AgencyError) -> int:
    """Resolve an error to its HTTP status, defaulting to 500."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_TYPE_TO_STATUS:
            return ERROR_TYPE_TO_STATUS[error_type]
    return 500


def problem_response(
    *,
    status: int,
    title: str | None = None,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title or STATUS_TITLES.get(status, "Error"),
        status=status,
        detail=detail,
        instance=instance,
        errors=[ErrorDetail(**e) for e in errors or []],
    )
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


async def agency_error_handler(request: Request, exc: AgencyError) -> JSONResponse:
    """Typed errors keep their own message, including the store's text."""
    status = status_for_error(exc)
    log = logger.warning if status < 500 else logger.error
    log("request_failed", status_code=status, **exc.to_dict())

    errors = []
    if isinstance(exc, ValidationError) and exc.field:
        errors.append({"code": "INVALID_INPUT", "message": exc.message, "field": exc.field})
    return problem_response(
        status=status,
        detail=exc.message,
        instance=str(request.url),
        errors=errors,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are a 400, like every other bad input."""
    errors = [
        {
            "code": "INVALID_INPUT",
            "message": str(err.get("msg", "")),
            "field": ".".join(str(part) for part in err.get("loc", ())),
        }
        for err in exc.errors()
    ]
    return problem_response(
        status=400,
        detail="Request validation failed",
        instance=str(request.url),
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions -- returns 500 with ProblemDetail."""
    logger.exception(
        "request_crashed",
        error_type=type(exc).__name__,
        category=categorize_error(exc).value,
    )
    return problem_response(
        status=500,
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )
