from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.models import UserRole
from libs.common.config import Settings
from libs.db.base import Base
from libs.db.config import Database, create_database
from services.gateway_service.app.main import create_app

# Import all models so metadata includes every table
from services.members_service import models as _member_models  # noqa: F401
from services.store_service import models as _store_models  # noqa: F401
from tests.factories import UserFactory, persist
from tests.fakes import ADMIN_ID, API_KEY, WEBHOOK_SECRET, FakeClerk, FakeStorage


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENVIRONMENT="local",
        LOG_LEVEL="WARNING",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        API_SECRET_KEY=API_KEY,
        CLERK_WEBHOOK_SECRET=WEBHOOK_SECRET,
    )


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    """A fresh in-memory database with every table created."""
    database = create_database(settings)
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield database

    await database.dispose()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture
def fake_clerk() -> FakeClerk:
    return FakeClerk()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def app(settings, database, fake_clerk, fake_storage):
    return create_app(
        settings, database=database, identity=fake_clerk, storage=fake_storage
    )


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def customer_headers() -> dict:
    return {"Authorization": "Bearer customer-token"}


@pytest.fixture
def other_customer_headers() -> dict:
    return {"Authorization": "Bearer other-token"}


@pytest_asyncio.fixture
async def admin_user(database):
    """The users row that makes ADMIN_ID an admin."""
    user = UserFactory.create(auth_id=ADMIN_ID, role=UserRole.ADMIN, name="Admin")
    await persist(database, user)
    return user


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def api_key_headers() -> dict:
    return {"x-api-key": API_KEY}
