"""
Configuration and settings for the continuity analysis service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared import constants


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, env="USE_IN_MEMORY_BACKENDS"
    )

    # Queue (Redis)
    redis_url: Optional[str] = Field(default=None, env="REDIS_URL")
    redis_queue_key: str = Field(
        default="backupboss:recalculations", env="REDIS_QUEUE_KEY"
    )

    # Alert email (Resend)
    resend_api_key: Optional[str] = Field(default=None, env="RESEND_API_KEY")
    alert_sender: str = Field(
        default="Backup Boss <alerts@backupboss.io>", env="ALERT_SENDER"
    )

    # Bearer token -> {"sub", "orgId", "permissions"}; issued by the auth provider.
    api_tokens: dict[str, dict] = Field(default_factory=dict, env="API_TOKENS")

    # Analysis policy
    analysis_reuse_hours: float = Field(
        default=constants.ANALYSIS_REUSE_HOURS, env="ANALYSIS_REUSE_HOURS"
    )
    recalculation_interval_days: float = Field(
        default=constants.RECALCULATION_INTERVAL_DAYS,
        env="RECALCULATION_INTERVAL_DAYS",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
