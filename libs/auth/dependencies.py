from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.clerk import ClerkClient
from libs.auth.models import AuthUser, UserRole
from libs.auth.policy import Action, is_allowed, parse_role
from libs.common.errors import ForbiddenError, UnauthorizedError
from libs.db.session import get_async_db


def get_identity_client(request: Request) -> ClerkClient:
    return request.app.state.identity


def get_optional_user(request: Request) -> Optional[AuthUser]:
    """
    The caller resolved by the access gate, if any. Requests admitted via the
    API key or on public routes may carry no session.
    """
    return getattr(request.state, "auth_user", None)


async def get_current_user(
    user: Annotated[Optional[AuthUser], Depends(get_optional_user)],
) -> AuthUser:
    """Require a signed-in caller."""
    if user is None:
        raise UnauthorizedError()
    return user


async def get_caller_role(db: AsyncSession, user_id: str) -> UserRole:
    """
    Look up the caller's role on their users row. Callers without a row are
    customers.
    """
    result = await db.execute(
        text("SELECT role FROM users WHERE auth_id = :auth_id"),
        {"auth_id": user_id},
    )
    return parse_role(result.scalar_one_or_none())


def require_permission(action: Action) -> Callable:
    """
    Dependency factory: signed-in caller whose role is allowed ``action``.
    """

    async def _dependency(
        current_user: Annotated[AuthUser, Depends(get_current_user)],
        db: Annotated[AsyncSession, Depends(get_async_db)],
    ) -> AuthUser:
        role = await get_caller_role(db, current_user.user_id)
        if not is_allowed(role, action):
            raise ForbiddenError("Admin access required")
        return current_user

    return _dependency
