"""
Configuration and settings for the portfolio site.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    site_title: str = Field(default="romanriv.com")

    # Hosted backend (Supabase project)
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)

    # Direct Postgres connection string for the same project
    database_url: Optional[str] = Field(default=None)

    # S3-compatible storage credentials
    storage_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_S3_ACCESS_KEY_ID", "storage_access_key_id"
        ),
    )
    storage_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_S3_SECRET_ACCESS_KEY", "storage_secret_access_key"
        ),
    )
    storage_region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("SUPABASE_S3_REGION", "storage_region"),
    )
    media_bucket: str = Field(default="media")
    anime_cover_bucket: str = Field(default="anime-covers")

    session_cookie_secure: bool = Field(default=False)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "PORTFOLIO_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )
    log_level: str = Field(default="INFO")

    @property
    def public_base_url(self) -> str:
        return (self.supabase_url or "").rstrip("/")

    @property
    def backend_configured(self) -> bool:
        """Admin pages fail closed unless a backend is available."""
        if self.use_in_memory_backends:
            return True
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
