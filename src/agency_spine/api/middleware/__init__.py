"""API middleware and exception handlers."""

from agency_spine.api.middleware.errors import (
    agency_error_handler,
    problem_response,
    request_validation_handler,
    unhandled_exception_handler,
)
from agency_spine.api.middleware.request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
    "agency_error_handler",
    "problem_response",
    "request_validation_handler",
    "unhandled_exception_handler",
]
