"""
FastAPI dependency injection -- settings and the shared store objects.

Usage in routers::

    from agency_spine.api.deps import Access

    @router.get("/tables")
    def list_tables(access: Access):
        ...

Manifesto:
    Routers never build a store. The lifespan owns the one ``StoreClient``
    of the process and the ``ResourceAccess`` around it; dependencies only
    hand them out from ``app.state``.

Tags:
    agency-spine, api, dependency-injection

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from agency_spine.core.settings import APISettings, get_api_settings
from agency_spine.core.store import StoreClient
from agency_spine.resources.protocol import ResourceAccess


def get_settings() -> APISettings:
    """Cached API settings; overridden per app by ``create_app``."""
    return get_api_settings()


def get_store(request: Request) -> StoreClient:
    """The process store client opened by the lifespan."""
    return request.app.state.store


def get_access(request: Request) -> ResourceAccess:
    """Resource Access Protocol bound to the process store."""
    return request.app.state.access


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[APISettings, Depends(get_settings)]
Store = Annotated[StoreClient, Depends(get_store)]
Access = Annotated[ResourceAccess, Depends(get_access)]
