"""
Configuration for the client-side tracker library.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "http://localhost:4001"


class TrackerSettings(BaseSettings):
    """Environment-backed settings for the upload client and local store."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRACKER_",
        extra="ignore",
    )

    # Upload backend
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL)
    health_timeout_seconds: float = Field(default=5.0, gt=0)
    upload_timeout_seconds: float = Field(default=30.0, gt=0)

    # Host the client itself is served from; None means "running locally".
    page_host: Optional[str] = Field(default=None)

    # Local persistence (any SQLAlchemy URL)
    data_url: str = Field(default="sqlite:///fusion-tracker.sqlite")


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    """Return cached settings instance."""
    return TrackerSettings()
