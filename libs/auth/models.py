import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class AuthUser(BaseModel):
    """
    The caller behind a verified Clerk session token.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    session_id: Optional[str] = Field(None, alias="sid")
    email: Optional[str] = None
    authorized_party: Optional[str] = Field(None, alias="azp")
