"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers and the
lifespan into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root. The lifespan opens the
    process's one ``StoreClient`` before the first request and closes it
    (draining in-flight statements) on shutdown. A store that cannot be
    reached at startup is fatal: the error propagates and the server never
    starts serving.

Tags:
    agency-spine, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from agency_spine.api.deps import get_settings
from agency_spine.api.middleware import (
    RequestIDMiddleware,
    agency_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from agency_spine.core.errors import AgencyError
from agency_spine.core.logging import get_logger
from agency_spine.core.settings import APISettings, StoreSettings, get_store_settings
from agency_spine.core.store import StoreClient
from agency_spine.resources.protocol import ResourceAccess

API_PREFIX = "/api"

log = get_logger("agency_spine.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan -- open the store, close it on shutdown."""
    store: StoreClient | None = app.state.store
    owned = store is None
    if store is None:
        store = StoreClient(app.state.store_settings)

    if not store.adapter.is_connected:
        # StoreConnectionError propagates: the process must not serve without a store.
        store.connect()

    app.state.store = store
    app.state.access = ResourceAccess(store)
    log.info(
        "api_started",
        version=app.version,
        backend=store.dialect.name,
        database=store.database_name,
    )

    try:
        yield
    finally:
        log.info("api_stopping")
        if owned:
            store.close()
            app.state.store = None
        app.state.access = None


def create_app(
    *,
    settings: APISettings | None = None,
    store_settings: StoreSettings | None = None,
    store: StoreClient | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : APISettings | None
        Override API settings (useful for testing).
    store_settings : StoreSettings | None
        Settings for the store the lifespan opens.
    store : StoreClient | None
        An existing store client. The caller keeps ownership and closes it.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        lifespan=lifespan,
        docs_url=f"{API_PREFIX}/docs",
        openapi_url=f"{API_PREFIX}/openapi.json",
    )

    app.state.settings = settings
    app.state.store_settings = store_settings or get_store_settings()
    app.state.store = store
    app.state.access = None

    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(AgencyError, agency_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from agency_spine.api.routers import health, query, tables

    app.include_router(health.router, prefix=API_PREFIX, tags=["health"])
    app.include_router(tables.router, prefix=API_PREFIX, tags=["tables"])
    app.include_router(query.router, prefix=API_PREFIX, tags=["query"])

    return app
