"""Client cache & mutation layer.

Usage::

    from agency_spine.client import HttpTransport, ResourceClient

    async with ResourceClient(HttpTransport("http://localhost:3001")) as client:
        result = await client.fetch_resource("Properties", {"status": "Available"})
        await client.update_record("Properties", "P001", {"status": "Sold"}, id_field="property_id")
"""

from .cache import (
    DEFAULT_GC_TIME,
    DEFAULT_STALENESS,
    EntryState,
    QueryResult,
    QueryStatus,
    ResourceClient,
)
from .health import DEFAULT_HEALTH_INTERVAL, HealthMonitor
from .keys import cache_key, resource_scope
from .transports import HttpTransport, LocalTransport, Transport

__all__ = [
    "DEFAULT_GC_TIME",
    "DEFAULT_HEALTH_INTERVAL",
    "DEFAULT_STALENESS",
    "EntryState",
    "HealthMonitor",
    "HttpTransport",
    "LocalTransport",
    "QueryResult",
    "QueryStatus",
    "ResourceClient",
    "Transport",
    "cache_key",
    "resource_scope",
]
