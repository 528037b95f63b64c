"""
Keeps local user rows in step with Clerk.

Webhook deliveries and the admin directory sync share these functions, so a
user looks the same locally whichever path wrote it.
"""

from typing import Any, Mapping, Optional, Union

from libs.auth.clerk import ClerkClient, ClerkUser
from libs.common.datetime_utils import from_epoch_ms, utc_now
from libs.common.logging import get_logger
from libs.db.store import atomic, fetch_one
from services.members_service.models import User
from services.members_service.schemas import SyncResult
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _profile_fields(clerk_user: ClerkUser) -> dict[str, Any]:
    return {
        "email": clerk_user.email,
        "name": clerk_user.display_name,
        "role": clerk_user.role,
        "profile_image": clerk_user.image_url,
    }


async def get_user_by_auth_id(db: AsyncSession, auth_id: str) -> Optional[User]:
    return await fetch_one(db, select(User).where(User.auth_id == auth_id))


async def create_user(db: AsyncSession, clerk_user: ClerkUser) -> User:
    user = User(
        auth_id=clerk_user.id,
        created_at=from_epoch_ms(clerk_user.created_at) or utc_now(),
        **_profile_fields(clerk_user),
    )
    async with atomic(db):
        db.add(user)
    logger.info("User created: %s", clerk_user.id)
    return user


async def update_user(db: AsyncSession, clerk_user: ClerkUser) -> Optional[User]:
    """Overwrite the profile of an existing row. Returns None when there is none."""
    user = await get_user_by_auth_id(db, clerk_user.id)
    if user is None:
        return None

    async with atomic(db):
        for field, value in _profile_fields(clerk_user).items():
            setattr(user, field, value)
        user.updated_at = from_epoch_ms(clerk_user.updated_at) or utc_now()
    logger.info("User updated: %s", clerk_user.id)
    return user


async def upsert_user(db: AsyncSession, clerk_user: ClerkUser) -> tuple[User, bool]:
    """
    Update the matching row, or create it if Clerk knows a user we do not.
    Returns (user, created).
    """
    user = await update_user(db, clerk_user)
    if user is not None:
        return user, False
    return await create_user(db, clerk_user), True


async def delete_user(db: AsyncSession, auth_id: str) -> int:
    async with atomic(db):
        result = await db.execute(delete(User).where(User.auth_id == auth_id))
    logger.info("User deleted: %s", auth_id)
    return result.rowcount


def _entry_id(entry: Union[ClerkUser, Mapping[str, Any]]) -> Optional[str]:
    if isinstance(entry, ClerkUser):
        return entry.id
    return entry.get("id") if isinstance(entry, Mapping) else None


async def sync_directory(db: AsyncSession, identity: ClerkClient) -> SyncResult:
    """
    Replay create-or-update for every user in the Clerk directory.

    A row that fails is rolled back on its own, counted, and skipped; the
    rest of the directory is still processed.
    """
    result = SyncResult()

    async for entry in identity.iter_users():
        result.total += 1
        try:
            clerk_user = ClerkUser.model_validate(entry)
            _, created = await upsert_user(db, clerk_user)
        except Exception:
            await db.rollback()
            logger.warning(
                "Sync failed for directory entry %s", _entry_id(entry), exc_info=True
            )
            result.errors += 1
            continue

        if created:
            result.created += 1
        else:
            result.updated += 1

    logger.info(
        "Directory sync finished",
        extra={"extra_fields": result.model_dump(exclude={"message"})},
    )
    return result
