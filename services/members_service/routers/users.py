"""Users router: admin listing, directory sync, and per-user CRUD."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.clerk import ClerkClient
from libs.auth.dependencies import get_identity_client, require_permission
from libs.auth.models import AuthUser, UserRole
from libs.auth.policy import Action
from libs.common.errors import BadRequestError, success_response
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from libs.db.store import atomic, delete_row, get_or_404, update_row
from services.members_service.models import User
from services.members_service.schemas import (
    SyncResult,
    UserResponse,
    UserUpdate,
    UserWithOrderCount,
)
from services.members_service.services.user_sync import sync_directory
from sqlalchemy import column, delete, func, select, table
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

# Orders belong to the store service; only the owner column is needed here
orders_table = table("orders", column("id"), column("user_id"))


async def _get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    return await get_or_404(db, User, User.id == user_id, message="User not found")


@router.get("", response_model=list[UserWithOrderCount])
async def list_users(
    role: Optional[UserRole] = Query(None),
    current_user: AuthUser = Depends(require_permission(Action.LIST_USERS)),
    db: AsyncSession = Depends(get_async_db),
):
    """List users newest first, each with the number of orders they placed."""
    order_count = (
        select(func.count(orders_table.c.id))
        .where(orders_table.c.user_id == User.auth_id)
        .scalar_subquery()
    )
    query = select(User, order_count.label("order_count")).order_by(
        User.created_at.desc()
    )
    if role is not None:
        query = query.where(User.role == role)

    result = await db.execute(query)
    users = [
        UserWithOrderCount(
            **UserResponse.model_validate(user).model_dump(), order_count=count or 0
        )
        for user, count in result.all()
    ]
    return success_response(users)


@router.delete("")
async def delete_user_by_query(
    user_id: Optional[uuid.UUID] = Query(None, alias="id"),
    current_user: AuthUser = Depends(require_permission(Action.DELETE_USERS)),
    db: AsyncSession = Depends(get_async_db),
):
    if user_id is None:
        raise BadRequestError("User ID required")

    async with atomic(db):
        await db.execute(delete(User).where(User.id == user_id))
    logger.info("User %s deleted by admin %s", user_id, current_user.user_id)
    return success_response({"message": "User deleted"})


@router.post("/sync", response_model=SyncResult)
async def sync_users(
    current_user: AuthUser = Depends(require_permission(Action.SYNC_USERS)),
    identity: ClerkClient = Depends(get_identity_client),
    db: AsyncSession = Depends(get_async_db),
):
    """Pull the whole Clerk directory into the users table."""
    logger.info("Directory sync requested by %s", current_user.user_id)
    result = await sync_directory(db, identity)
    return success_response(result)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    user = await _get_user_or_404(db, user_id)
    return success_response(UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    user = await _get_user_or_404(db, user_id)
    user = await update_row(db, user, payload.model_dump(exclude_unset=True))
    return success_response(UserResponse.model_validate(user))


@router.delete("/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    user = await _get_user_or_404(db, user_id)
    await delete_row(db, user)
    return success_response({"message": "User deleted successfully"})
