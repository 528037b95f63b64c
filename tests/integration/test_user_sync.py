"""Integration tests for the Clerk-to-users sync service."""

import pytest

from libs.auth.clerk import ClerkUser
from libs.auth.models import UserRole
from libs.common.errors import StoreError
from services.members_service.models import User
from services.members_service.services import user_sync
from tests.fakes import FakeClerk
from tests.factories import UserFactory, count_rows, load, persist


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upsert_creates_then_updates(db_session, database):
    clerk_user = ClerkUser(id="user_1", first_name="Ada", created_at=1_700_000_000_000)

    _, created = await user_sync.upsert_user(db_session, clerk_user)
    assert created is True

    _, created = await user_sync.upsert_user(
        db_session, clerk_user.model_copy(update={"last_name": "Lovelace"})
    )
    assert created is False

    stored = await load(database, User, User.auth_id == "user_1")
    assert stored.name == "Ada Lovelace"
    assert stored.created_at.year == 2023


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_missing_user_returns_none(db_session):
    assert await user_sync.update_user(db_session, ClerkUser(id="user_ghost")) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_user_by_subject(db_session, database):
    await persist(database, UserFactory.create(auth_id="user_1"), UserFactory.create())

    deleted = await user_sync.delete_user(db_session, "user_1")

    assert deleted == 1
    assert await count_rows(database, User) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sync_counts_row_failures_and_continues(db_session, database, monkeypatch):
    identity = FakeClerk(
        [ClerkUser(id="user_ok_1"), ClerkUser(id="user_broken"), ClerkUser(id="user_ok_2")]
    )
    real_upsert = user_sync.upsert_user

    async def flaky_upsert(db, clerk_user):
        if clerk_user.id == "user_broken":
            raise StoreError()
        return await real_upsert(db, clerk_user)

    monkeypatch.setattr(user_sync, "upsert_user", flaky_upsert)

    result = await user_sync.sync_directory(db_session, identity)

    assert result.total == 3
    assert result.created == 2
    assert result.updated == 0
    assert result.errors == 1
    assert await count_rows(database, User) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sync_counts_malformed_directory_entry_and_continues(db_session, database):
    identity = FakeClerk(
        [
            {"id": "user_ok_1", "first_name": "Ada"},
            {"id": "user_bad", "email_addresses": [{"id": "e2"}]},
            {"first_name": "No Id"},
            {"id": "user_ok_2", "public_metadata": {"role": "admin"}},
        ]
    )

    result = await user_sync.sync_directory(db_session, identity)

    assert result.total == 4
    assert result.created == 2
    assert result.errors == 2
    assert await count_rows(database, User) == 2
    admin = await load(database, User, User.auth_id == "user_ok_2")
    assert admin.role is UserRole.ADMIN


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sync_survives_unexpected_row_failure(db_session, database, monkeypatch):
    identity = FakeClerk([ClerkUser(id="user_ok"), ClerkUser(id="user_boom")])
    real_upsert = user_sync.upsert_user

    async def exploding_upsert(db, clerk_user):
        if clerk_user.id == "user_boom":
            raise RuntimeError("directory entry could not be mapped")
        return await real_upsert(db, clerk_user)

    monkeypatch.setattr(user_sync, "upsert_user", exploding_upsert)

    result = await user_sync.sync_directory(db_session, identity)

    assert (result.total, result.created, result.errors) == (2, 1, 1)
    assert await count_rows(database, User, User.auth_id == "user_ok") == 1
