"""
Media provider abstraction for Cloudinary, Google Drive and in-memory testing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from backend.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.file"]
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ProviderError(Exception):
    """Raised when a provider rejects or fails an upload."""


class MediaProvider(Protocol):
    """Defines the one operation the API needs from cloud storage."""

    name: str
    label: str

    def upload_file(self, local_path: str, name: str, mime_type: str) -> str:
        """Uploads the file at ``local_path`` and returns its public URL."""
        ...


@dataclass
class InMemoryProvider:
    """Test double for provider interactions."""

    base_url: str = "https://example.test/media"
    stored_objects: dict = field(default_factory=dict)
    name: str = "in_memory"
    label: str = "In-memory storage"

    def upload_file(self, local_path: str, name: str, mime_type: str) -> str:
        with open(local_path, "rb") as f:
            self.stored_objects[name] = (mime_type, f.read())
        return f"{self.base_url}/{name}"


@dataclass
class CloudinaryProvider:
    """Uploads through the Cloudinary SDK; returns the secure delivery URL."""

    cloud_name: str
    api_key: str
    api_secret: str
    name: str = "cloudinary"
    label: str = "Cloudinary"

    def __post_init__(self):
        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True,
        )

    def upload_file(self, local_path: str, name: str, mime_type: str) -> str:
        try:
            result = cloudinary.uploader.upload(
                local_path,
                resource_type="auto",
                public_id=Path(name).stem,
                use_filename=True,
                unique_filename=True,
            )
        except CloudinaryError as exc:
            logger.error("Error uploading to Cloudinary: %s", exc)
            raise ProviderError(str(exc)) from exc
        return result["secure_url"]


@dataclass
class GoogleDriveProvider:
    """
    Uploads to Google Drive with a service account and shares the file publicly.
    """

    credentials: service_account.Credentials
    folder_id: Optional[str] = None
    name: str = "google_drive"
    label: str = "Google Drive"

    def __post_init__(self):
        self._drive = build(
            "drive", "v3", credentials=self.credentials, cache_discovery=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleDriveProvider":
        if settings.google_service_account_key_path:
            info = json.loads(
                Path(settings.google_service_account_key_path).read_text("utf-8")
            )
        elif settings.google_client_email and settings.google_private_key:
            info = {
                "type": "service_account",
                "client_email": settings.google_client_email,
                "private_key": settings.google_private_key.replace("\\n", "\n"),
                "client_id": settings.google_client_id,
                "token_uri": GOOGLE_TOKEN_URI,
            }
        else:
            raise ProviderError("Google Drive credentials not configured properly")
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=GOOGLE_DRIVE_SCOPES
        )
        return cls(credentials=credentials, folder_id=settings.google_drive_folder_id)

    def upload_file(self, local_path: str, name: str, mime_type: str) -> str:
        metadata = {"name": name}
        if self.folder_id:
            metadata["parents"] = [self.folder_id]
        media = MediaFileUpload(local_path, mimetype=mime_type, resumable=True)
        try:
            created = (
                self._drive.files()
                .create(body=metadata, media_body=media, fields="id")
                .execute()
            )
            file_id = created["id"]
            self._drive.permissions().create(
                fileId=file_id, body={"role": "reader", "type": "anyone"}
            ).execute()
        except HttpError as exc:
            logger.error("Error uploading to Google Drive: %s", exc)
            raise ProviderError(str(exc)) from exc
        link = f"https://drive.google.com/file/d/{file_id}/view?usp=sharing"
        logger.info("File uploaded to Google Drive: %s", link)
        return link


def create_media_provider(settings: Settings) -> Optional[MediaProvider]:
    """
    Builds the provider selected by configuration, or None if it is not configured.
    """
    if settings.use_in_memory_provider:
        return InMemoryProvider()

    choice = settings.media_provider
    if choice == "auto":
        if settings.cloudinary_configured:
            choice = "cloudinary"
        elif settings.google_drive_configured:
            choice = "google_drive"
        else:
            logger.warning("No media provider credentials configured")
            return None

    try:
        if choice == "cloudinary":
            if not settings.cloudinary_configured:
                raise ProviderError("Cloudinary credentials not configured properly")
            return CloudinaryProvider(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
            )
        return GoogleDriveProvider.from_settings(settings)
    except (ProviderError, OSError, ValueError) as exc:
        logger.error("Failed to initialize %s: %s", choice, exc)
        return None


def provider_label(settings: Settings) -> str:
    return {
        "cloudinary": "Cloudinary",
        "google_drive": "Google Drive",
    }.get(settings.media_provider, "Upload provider")
