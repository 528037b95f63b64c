"""Members service routers package."""

from services.members_service.routers.auth import router as auth_router
from services.members_service.routers.users import router as users_router
from services.members_service.routers.webhooks import router as webhooks_router

__all__ = [
    "auth_router",
    "users_router",
    "webhooks_router",
]
