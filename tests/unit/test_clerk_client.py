"""Unit tests for Clerk session verification and user mapping."""

import httpx
import pytest
from jose import jwt

from libs.auth.clerk import ClerkClient, ClerkUser
from libs.auth.models import UserRole
from libs.common.config import Settings
from libs.common.errors import UnauthorizedError

JWT_KEY = "unit-test-signing-key"


def _settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "CLERK_JWT_KEY": JWT_KEY,
        "CLERK_JWT_ALGORITHMS": ["HS256"],
    }
    values.update(overrides)
    return Settings(**values)


def _token(claims: dict, key: str = JWT_KEY) -> str:
    return jwt.encode(claims, key, algorithm="HS256")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_verify_session_returns_caller():
    client = ClerkClient(_settings())

    user = await client.verify_session(
        _token({"sub": "user_123", "sid": "sess_1", "azp": "https://app.test"})
    )

    assert user.user_id == "user_123"
    assert user.session_id == "sess_1"
    assert user.authorized_party == "https://app.test"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_verify_session_rejects_bad_signature():
    client = ClerkClient(_settings())

    with pytest.raises(UnauthorizedError):
        await client.verify_session(_token({"sub": "user_123"}, key="other-key"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_verify_session_rejects_token_without_subject():
    client = ClerkClient(_settings())

    with pytest.raises(UnauthorizedError):
        await client.verify_session(_token({"sid": "sess_1"}))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_verify_session_checks_authorized_party():
    client = ClerkClient(_settings(CLERK_AUTHORIZED_PARTIES=["https://app.test"]))

    with pytest.raises(UnauthorizedError):
        await client.verify_session(_token({"sub": "user_1", "azp": "https://evil.test"}))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_verify_session_without_key_rejects_everything():
    client = ClerkClient(_settings(CLERK_JWT_KEY=""))

    with pytest.raises(UnauthorizedError):
        await client.verify_session(_token({"sub": "user_1"}))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_iter_users_walks_every_page(monkeypatch):
    client = ClerkClient(_settings(CLERK_SYNC_PAGE_SIZE=2))
    directory = [ClerkUser(id=f"user_{i}") for i in range(5)]
    calls = []

    async def fake_list_users(*, limit, offset=0):
        calls.append((limit, offset))
        return directory[offset:offset + limit]

    monkeypatch.setattr(client, "list_users", fake_list_users)

    seen = [user.id async for user in client.iter_users()]

    assert seen == [f"user_{i}" for i in range(5)]
    assert calls == [(2, 0), (2, 2), (2, 4)]


@pytest.mark.unit
def test_clerk_user_profile_fields():
    user = ClerkUser.model_validate(
        {
            "id": "user_1",
            "email_addresses": [
                {"id": "idn_1", "email_address": "old@example.com"},
                {"id": "idn_2", "email_address": "primary@example.com"},
            ],
            "primary_email_address_id": "idn_2",
            "first_name": "Ada",
            "last_name": None,
            "public_metadata": {"role": "admin"},
        }
    )

    assert user.email == "primary@example.com"
    assert user.display_name == "Ada"
    assert user.role is UserRole.ADMIN


@pytest.mark.unit
def test_clerk_user_fallbacks():
    user = ClerkUser.model_validate(
        {
            "id": "user_2",
            "email_addresses": [{"id": "idn_1", "email_address": "only@example.com"}],
        }
    )

    assert user.email == "only@example.com"
    assert user.display_name == "User"
    assert user.role is UserRole.CUSTOMER


@pytest.mark.unit
@pytest.mark.asyncio
async def test_list_users_returns_raw_entries_without_validating(monkeypatch):
    page = [
        {"id": "user_ok"},
        {"id": "user_bad", "email_addresses": [{"id": "e2"}]},
    ]
    seen_requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_requests.append(request)
        return httpx.Response(200, json=page)

    real_client = httpx.AsyncClient

    def client_over_mock(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_over_mock)
    client = ClerkClient(_settings(CLERK_SECRET_KEY="sk_test"))

    entries = await client.list_users(limit=10, offset=20)

    assert entries == page
    assert seen_requests[0].url.params["offset"] == "20"
    assert seen_requests[0].headers["Authorization"] == "Bearer sk_test"
