"""
Configuration and settings for the catalog backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # Document store. mongodb:// and mongodb+srv:// select MongoDB,
    # anything else is handed to SQLAlchemy.
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_name: str = Field(default="vlncontacts", alias="DATABASE_NAME")
    store_connect_timeout_ms: int = Field(
        default=5000, alias="STORE_CONNECT_TIMEOUT_MS"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, alias="CRM_USE_IN_MEMORY_BACKENDS"
    )

    # HTTP
    cors_origin: str = Field(default="http://localhost:5173", alias="CORS_ORIGIN")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, alias="PORT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
