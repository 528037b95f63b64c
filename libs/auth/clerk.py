"""Clerk identity provider client: session verification and user directory."""

from typing import Any, AsyncIterator, Optional

import httpx
from jose import JWTError, jwt
from pydantic import BaseModel, Field, ValidationError

from libs.auth.models import AuthUser, UserRole
from libs.auth.policy import parse_role
from libs.common.config import Settings
from libs.common.errors import ExternalServiceError, UnauthorizedError
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)

DEFAULT_DISPLAY_NAME = "User"


class ClerkEmailAddress(BaseModel):
    id: Optional[str] = None
    email_address: str


class ClerkUser(BaseModel):
    """
    A user as Clerk describes it, both in webhook payloads and in the
    backend API's user listing.
    """

    id: str
    email_addresses: list[ClerkEmailAddress] = Field(default_factory=list)
    primary_email_address_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    public_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @property
    def email(self) -> Optional[str]:
        for address in self.email_addresses:
            if address.id and address.id == self.primary_email_address_id:
                return address.email_address
        if self.email_addresses:
            return self.email_addresses[0].email_address
        return None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or DEFAULT_DISPLAY_NAME

    @property
    def role(self) -> UserRole:
        return parse_role(self.public_metadata.get("role"))


class ClerkClient:
    """
    Talks to Clerk. One instance is built per application and shared through
    ``app.state``; it holds configuration only.
    """

    def __init__(self, settings: Settings):
        self.api_url = settings.CLERK_API_URL.rstrip("/")
        self.secret_key = settings.CLERK_SECRET_KEY
        self.jwt_key = settings.CLERK_JWT_KEY
        self.jwt_algorithms = settings.CLERK_JWT_ALGORITHMS
        self.authorized_parties = settings.CLERK_AUTHORIZED_PARTIES
        self.page_size = settings.CLERK_SYNC_PAGE_SIZE
        self.timeout = settings.CLERK_TIMEOUT_SECONDS

    async def verify_session(self, token: str) -> AuthUser:
        """
        Validate a Clerk session token and return the caller.
        """
        if not self.jwt_key:
            logger.error("CLERK_JWT_KEY is not configured; rejecting session")
            raise UnauthorizedError()

        try:
            payload = jwt.decode(
                token,
                self.jwt_key,
                algorithms=self.jwt_algorithms,
                options={"verify_aud": False},
            )
            user = AuthUser(**payload)
        except (JWTError, ValidationError) as exc:
            logger.info("Session token rejected: %s", exc)
            raise UnauthorizedError() from exc

        if self.authorized_parties and user.authorized_party not in self.authorized_parties:
            logger.info("Session token from unexpected party %s", user.authorized_party)
            raise UnauthorizedError()

        return user

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def list_users(self, *, limit: int, offset: int = 0) -> list[dict[str, Any]]:
        """
        Fetch one page of the user directory as raw entries. Callers validate
        each entry into a ``ClerkUser`` themselves.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.api_url}/users",
                    params={"limit": limit, "offset": offset, "order_by": "created_at"},
                    headers=self._headers(),
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Clerk user listing failed: %s", exc)
            raise ExternalServiceError("Identity provider request failed") from exc

        body = response.json()
        # The endpoint returns a bare array; some API versions wrap it in "data"
        items = body.get("data", []) if isinstance(body, dict) else body
        return list(items)

    async def iter_users(self) -> AsyncIterator[dict[str, Any]]:
        """Walk the whole directory page by page."""
        offset = 0
        while True:
            page = await self.list_users(limit=self.page_size, offset=offset)
            for user in page:
                yield user
            if len(page) < self.page_size:
                break
            offset += self.page_size
