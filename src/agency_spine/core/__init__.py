"""Agency Spine Core -- store access primitives.

Architecture::

    errors.py          Structured error hierarchy (AgencyError and subclasses)
    settings.py        pydantic-settings (DB_* / API_*)
    logging.py         structlog configuration
    dialect.py         SQL dialect abstraction (sqlite, postgresql)
    adapters/          Database adapters + registry
    store.py           StoreClient (one per process, graceful close)
"""

from agency_spine.core.errors import (
    AgencyError,
    ConfigError,
    ErrorCategory,
    StoreConnectionError,
    StoreError,
    ValidationError,
)
from agency_spine.core.settings import APISettings, StoreSettings
from agency_spine.core.store import StoreClient

__all__ = [
    "AgencyError",
    "ConfigError",
    "ErrorCategory",
    "StoreConnectionError",
    "StoreError",
    "ValidationError",
    "APISettings",
    "StoreSettings",
    "StoreClient",
]
