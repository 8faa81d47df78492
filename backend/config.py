"""
Configuration and settings for the upload backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/webm",
        "video/quicktime",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
    }
)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    port: int = Field(default=4001)
    cors_origins: str = Field(default="*")

    # Which provider handles uploads; "auto" picks the first configured one.
    media_provider: Literal["auto", "cloudinary", "google_drive"] = Field(default="auto")

    # Cloudinary
    cloudinary_cloud_name: Optional[str] = Field(default=None)
    cloudinary_api_key: Optional[str] = Field(default=None)
    cloudinary_api_secret: Optional[str] = Field(default=None)

    # Google Drive (service account key file, or inline credentials)
    google_service_account_key_path: Optional[str] = Field(default=None)
    google_client_email: Optional[str] = Field(default=None)
    google_private_key: Optional[str] = Field(default=None)
    google_client_id: Optional[str] = Field(default=None)
    google_drive_folder_id: Optional[str] = Field(default=None)

    # Uploads are spooled here before being handed to the provider.
    upload_tmp_dir: Optional[str] = Field(default=None)
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)

    # Development toggles
    use_in_memory_provider: bool = Field(default=False)

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    @property
    def google_drive_configured(self) -> bool:
        return bool(
            self.google_service_account_key_path
            or (self.google_client_email and self.google_private_key)
        )

    def cors_origins_list(self) -> List[str]:
        raw = self.cors_origins or ""
        return [x.strip().rstrip("/") for x in raw.split(",") if x.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
