"""
Core configuration for the Indeks analytics sync.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from pydantic import model_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_env_values(cls, data):
        if not isinstance(data, dict):
            return data
        # Hosting platforms sometimes inject empty-string env vars.
        # Treat them as "unset" so typed fields (bool/int/float) don't crash on startup.
        return {key: value for key, value in data.items() if value != ""}

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "info"

    # Relational store (projects, rollup tables, sync log)
    DATABASE_URL: str = "postgresql://localhost:5432/indeks"

    # Raw event store. Empty means the events table lives next to the rollups.
    EVENT_STORE_URL: str = ""

    # Shared secret for the scheduled sync trigger.
    # If empty, the trigger endpoint accepts unauthenticated calls (local dev).
    CRON_SECRET: str = ""

    # Rollup pipeline
    ANALYTICS_SYNC_ENABLED: bool = True
    ANALYTICS_SYNC_TYPE: str = "daily"  # daily | manual
    # Upper bound on a single event-store fetch; <= 0 disables the bound.
    ANALYTICS_EVENT_FETCH_TIMEOUT_SECONDS: float = 60.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
