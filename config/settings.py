"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/portal.db")

    DISPLAY_TIMEZONE: str = "UTC"
    SLOT_LEAD_HOURS: int = Field(default=24, ge=0)
    DEFAULT_SLOT_DURATION_MINUTES: int = Field(default=30, ge=15, le=180)
    SCHEDULED_GRACE_MINUTES: int = Field(default=0, ge=0)

    HUB_PATH: str = "/interviews"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
