"""
Structured error types for the agency data-access layer.

Every failure that crosses the Resource Access Protocol or the client cache
layer is one of the typed errors below. Each carries a category, an explicit
retry flag, a free-form context mapping and the original exception as its
cause, so the boundary API can map it to an HTTP status and the logs keep the
store's own message.

Manifesto:
    - **Typed hierarchy:** the caller can tell "store unreachable" from
      "payload rejected" from "store refused the statement"
    - **No silent retries:** every error is non-retryable by default; the
      protocol never retries on its own
    - **Original message preserved:** ``StoreError`` keeps the driver's text
    - **Not-found is not an error:** deletes that match nothing return a
      negative ``MutationOutcome`` instead of raising

Architecture:
    ::

        AgencyError (category, retryable, context, cause)
        ├── StoreConnectionError   DATABASE    store unreachable / handshake
        ├── StoreError             DATABASE    store rejected the operation
        ├── ValidationError        VALIDATION  empty payload, unknown identifier
        └── ConfigError            CONFIG      bad settings, second live client

Examples:
    >>> err = ValidationError("Record payload is empty", field="record")
    >>> err.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> err.to_dict()["field"]
    'record'

Tags:
    error-handling, exception-hierarchy, agency-spine, store

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for routing and HTTP status mapping."""

    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    NETWORK = "NETWORK"
    INTERNAL = "INTERNAL"


class AgencyError(Exception):
    """
    Base exception for all agency-spine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AgencyError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreError("Insert failed", cause=e).with_context(resource="Properties")
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class StoreConnectionError(AgencyError):
    """Store unreachable or handshake failed.

    Fatal when raised while the boundary process starts; recovery is a
    manual restart.
    """

    default_category = ErrorCategory.DATABASE


class StoreError(AgencyError):
    """Store rejected an operation (constraint, malformed statement, transient failure)."""

    default_category = ErrorCategory.DATABASE


class ValidationError(AgencyError):
    """
    Caller-supplied input rejected before any store round trip.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class ConfigError(AgencyError):
    """Invalid or missing configuration."""

    default_category = ErrorCategory.CONFIG


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, AgencyError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "AgencyError",
    "StoreConnectionError",
    "StoreError",
    "ValidationError",
    "ConfigError",
    "categorize_error",
]
