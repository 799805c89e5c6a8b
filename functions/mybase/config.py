"""
Configuration and settings for the MyBase API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Firestore (the production document store)
    use_firestore: bool = Field(default=False, validation_alias="MYBASE_USE_FIRESTORE")
    google_cloud_project: Optional[str] = Field(
        default=None, validation_alias="GOOGLE_CLOUD_PROJECT"
    )

    # SQL document table (Postgres, or SQLite for local runs)
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="MYBASE_USE_IN_MEMORY_BACKENDS"
    )

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO", validation_alias="MYBASE_LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
