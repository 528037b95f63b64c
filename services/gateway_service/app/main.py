"""FastAPI application entrypoint for the Reboot API.

All service routers are mounted on one app. External clients (database,
Clerk, storage) are built here and shared through ``app.state``; tests pass
their own in.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI

from libs.auth.clerk import ClerkClient
from libs.common.config import Settings, get_settings
from libs.common.errors import add_exception_handlers
from libs.common.middleware import add_access_gate, add_observability_middleware
from libs.common.storage import StorageService
from libs.db.config import Database, create_database
from services.media_service.routers import uploads_router
from services.members_service.routers import (
    auth_router,
    users_router,
    webhooks_router,
)
from services.store_service.routers import (
    catalog_router,
    categories_router,
    orders_router,
    variants_router,
)


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    identity: Optional[Any] = None,
    storage: Optional[Any] = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.db.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Catalog, order and user API for the Reboot mobile app.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database or create_database(settings)
    app.state.identity = identity or ClerkClient(settings)
    app.state.storage = storage or StorageService(settings)

    # Global exception handlers for consistent error responses
    add_exception_handlers(app)

    # Gate first, then tracing so that tracing wraps the gate
    add_access_gate(app)
    add_observability_middleware(app)

    @app.get("/", tags=["system"])
    async def root() -> dict[str, Any]:
        """Static service descriptor."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "message": f"Welcome to the {settings.APP_NAME}",
            "endpoints": {
                "products": "/api/products",
                "categories": "/api/categories",
                "carousel": "/api/carousel",
                "orders": "/api/orders",
                "auth": "/api/auth/me",
            },
        }

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    # Store service
    app.include_router(catalog_router)
    app.include_router(variants_router)
    app.include_router(categories_router)
    app.include_router(orders_router)

    # Members service
    app.include_router(users_router)
    app.include_router(auth_router)
    app.include_router(webhooks_router)

    # Media service
    app.include_router(uploads_router)

    return app


app = create_app()
