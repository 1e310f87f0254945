"""Canonical cache keys for (resource, filter set).

Resource names are matched case-insensitively by the store catalog, so the
cache folds them too: ``properties`` and ``Properties`` share entries and
invalidations.
"""

from __future__ import annotations

import json
from typing import Any

from agency_spine.resources.types import Filters


def resource_scope(resource: str) -> str:
    """Case-folded resource name used for keys and invalidation."""
    return resource.casefold()


def canonical_filters(filters: Filters | None) -> list[list[Any]]:
    """Filter entries sorted by field name."""
    return [[field, value] for field, value in sorted((filters or {}).items())]


def cache_key(resource: str, filters: Filters | None = None) -> str:
    """Stable string key; structurally equal filter maps give equal keys.

    >>> cache_key("Properties", {"status": "Sold", "agent_id": 7})
    '["properties",[["agent_id",7],["status","Sold"]]]'
    """
    return json.dumps(
        [resource_scope(resource), canonical_filters(filters)],
        separators=(",", ":"),
        default=str,
    )


__all__ = [
    "cache_key",
    "canonical_filters",
    "resource_scope",
]
