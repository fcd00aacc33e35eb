"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Agency Portal Core"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Activity feed
    feed_default_days_back: int = Field(
        default=90,
        ge=1,
        le=365,
        description="Default lookback window for the activity feed",
    )
    feed_default_limit: int = Field(default=50, ge=1)
    feed_max_limit: int = Field(default=500, ge=1)
    adapter_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-source fetch timeout for a single feed request",
    )
    feed_cache_ttl_seconds: float = Field(
        default=30.0,
        ge=0,
        description="How long a complete feed stays cached (0 disables)",
    )
    adapter_retry_attempts: int = Field(default=3, ge=1, le=10)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
