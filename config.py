"""
Configuration settings for the material-store toolkit.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Environment
    # ========================================
    app_env: Literal["local", "dev", "qa", "prod"] = Field(
        default="local",
        description="Deployment environment (seed loading is meant for local/dev/qa)",
    )

    # ========================================
    # MongoDB
    # ========================================
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string (credentials included)",
    )
    mongodb_database: str = Field(
        default="edugo",
        description="Target database holding the worker collections",
    )
    mongodb_timeout_ms: int = Field(
        default=5000,
        ge=100,
        description="Server selection / connect timeout in milliseconds",
    )

    # ========================================
    # Event Log
    # ========================================
    event_retention_days: int = Field(
        default=90,
        ge=1,
        description="Days before material_event documents expire (TTL index)",
    )
    event_max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries allowed for a failed event (validator caps retry_count at 10)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    @property
    def event_retention_seconds(self) -> int:
        """TTL applied to the event log, in seconds."""
        return self.event_retention_days * 24 * 60 * 60

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    def get_mongo_client_options(self) -> dict[str, int]:
        """Keyword arguments passed to MongoClient."""
        return {
            "serverSelectionTimeoutMS": self.mongodb_timeout_ms,
            "connectTimeoutMS": self.mongodb_timeout_ms,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
