"""Application configuration via Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Async driver suffixes stripped for the synchronous (Alembic) URL
_ASYNC_DRIVERS = ("+asyncpg", "+aiosqlite")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOSTDIFF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/hostdiff.db",
        description="Async SQLAlchemy connection URL",
    )
    auto_create_schema: bool = Field(
        default=True,
        description="Create missing tables on startup (disable when using Alembic)",
    )

    # Application
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000)
    app_debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    # CORS
    cors_allowed_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (configure via HOSTDIFF_CORS_ALLOWED_ORIGINS)",
    )

    # Uploads
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest accepted snapshot upload, in bytes",
    )

    @computed_field
    @property
    def sync_database_url(self) -> str:
        """Synchronous DB URL (for Alembic migrations)."""
        url = self.database_url
        for driver in _ASYNC_DRIVERS:
            url = url.replace(driver, "")
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()
