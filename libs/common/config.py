from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    APP_NAME: str = "Reboot API"
    APP_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase (object storage)
    SUPABASE_URL: str = "http://localhost"
    SUPABASE_SERVICE_ROLE_KEY: str = "test-service-role-key"
    SUPABASE_STORAGE_BUCKET: str = "product-images"

    # Clerk (identity provider)
    CLERK_SECRET_KEY: str = ""
    CLERK_API_URL: str = "https://api.clerk.com/v1"
    # PEM public key for RS256 session tokens, or a shared secret for HS256
    CLERK_JWT_KEY: str = ""
    CLERK_JWT_ALGORITHMS: list[str] = ["RS256"]
    CLERK_AUTHORIZED_PARTIES: list[str] = []
    CLERK_WEBHOOK_SECRET: Optional[str] = None
    CLERK_SYNC_PAGE_SIZE: int = 500
    CLERK_TIMEOUT_SECONDS: float = 10.0

    # First-party client bypass. Unset means the bypass is disabled.
    API_SECRET_KEY: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @field_validator("API_SECRET_KEY", "CLERK_WEBHOOK_SECRET")
    @classmethod
    def blank_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
