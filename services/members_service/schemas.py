"""Pydantic schemas for the members service."""

import uuid
from datetime import datetime
from typing import Any, Optional

from libs.auth.models import UserRole
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    auth_id: str
    email: Optional[str] = None
    name: str
    role: UserRole
    profile_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserWithOrderCount(UserResponse):
    order_count: int = 0


class UserUpdate(BaseModel):
    """Admin edit of a local user row. Only fields present are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    profile_image: Optional[str] = Field(
        None, validation_alias=AliasChoices("profile_image", "avatar_url")
    )

    @field_validator("name", "role")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError(f"{info.field_name} may not be null")
        return value


class SyncResult(BaseModel):
    message: str = "Sync completed"
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0


class WebhookEvent(BaseModel):
    """Envelope of a Clerk webhook delivery; ``data`` depends on ``type``."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)
