"""Members Service models package."""

from services.members_service.models.user import User, UserRole  # noqa: F401

__all__ = [
    "User",
    "UserRole",
]
