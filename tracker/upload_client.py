"""
Client for the media upload backend, with a transparent mock fallback.

``upload_file`` and ``check_health`` surface failures to the caller;
``upload_file_with_fallback`` never fails and substitutes a simulated upload
whenever the real backend cannot be used.
"""

from __future__ import annotations

import ipaddress
import logging
import mimetypes
from enum import StrEnum
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import requests

from shared.errors import UploadErrorKind, UploadMessages, classify_error_text
from shared.types import LocalFile, MediaFile
from tracker.config import TrackerSettings, get_settings
from tracker.context import AppContext
from tracker.mock_data import MockDataGenerator

logger = logging.getLogger(__name__)

LOOPBACK_HOSTNAMES = {"localhost", "0.0.0.0"}

DEMO_MODE_NOTE = (
    "Demo Mode: Files are simulated and won't be stored. To enable cloud "
    "uploads, start the backend server with `python scripts/start_backend.py`."
)


class UploadError(Exception):
    """A failed upload, categorized for display."""

    def __init__(self, kind: UploadErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class UploadServiceStatus(StrEnum):
    CHECKING = "checking"
    ACTIVE = "active"
    DEMO = "demo"


def local_file_from_path(path: str | Path, mime_type: Optional[str] = None) -> LocalFile:
    path = Path(path)
    guessed, _ = mimetypes.guess_type(path.name)
    return LocalFile(
        name=path.name,
        type=mime_type or guessed or "application/octet-stream",
        content=path.read_bytes(),
    )


def is_loopback_host(host: Optional[str]) -> bool:
    if not host:
        return False
    host = host.strip("[]").lower()
    if host in LOOPBACK_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def _normalize_error_message(message: str) -> UploadError:
    kind = classify_error_text(message)
    if kind == UploadErrorKind.PROVIDER_QUOTA_EXCEEDED:
        return UploadError(kind, UploadMessages.QUOTA_EXCEEDED)
    if kind == UploadErrorKind.PROVIDER_NOT_CONFIGURED:
        return UploadError(
            UploadErrorKind.SERVICE_UNAVAILABLE, UploadMessages.SERVICE_UNAVAILABLE
        )
    return UploadError(UploadErrorKind.UNKNOWN, message)


class UploadClient:
    """Talks to ``POST /upload-media`` and ``GET /health`` on the backend."""

    def __init__(
        self,
        settings: TrackerSettings | None = None,
        generator: MockDataGenerator | None = None,
        session: requests.Session | None = None,
    ):
        self.settings = settings or get_settings()
        self.generator = generator or MockDataGenerator(AppContext())
        self.session = session or requests.Session()
        self.status = UploadServiceStatus.CHECKING

    @property
    def base_url(self) -> str:
        return self.settings.api_base_url.rstrip("/")

    def upload_file(self, file: LocalFile) -> MediaFile:
        """Uploads ``file`` to the backend. Raises UploadError on any failure."""
        try:
            response = self.session.post(
                f"{self.base_url}/upload-media",
                files={"file": (file.name, file.content, file.type)},
                timeout=self.settings.upload_timeout_seconds,
            )
        except requests.Timeout as exc:
            logger.error("Upload of %s timed out: %s", file.name, exc)
            raise UploadError(UploadErrorKind.TIMEOUT, UploadMessages.TIMEOUT) from exc
        except requests.ConnectionError as exc:
            logger.error("Upload service unreachable: %s", exc)
            raise UploadError(
                UploadErrorKind.NETWORK_UNREACHABLE, UploadMessages.UNREACHABLE
            ) from exc
        except requests.RequestException as exc:
            logger.error("Upload of %s failed: %s", file.name, exc)
            raise UploadError(UploadErrorKind.UNKNOWN, str(exc)) from exc

        if not response.ok:
            message = self._error_from_body(response) or (
                f"Upload failed with status {response.status_code}"
            )
            logger.error("Upload of %s rejected: %s", file.name, message)
            raise _normalize_error_message(message)

        try:
            data = response.json()
        except ValueError as exc:
            raise UploadError(UploadErrorKind.UNKNOWN, UploadMessages.NO_MEDIA_LINK) from exc

        if not isinstance(data, dict) or not data.get("success") or not data.get("mediaLink"):
            message = (data.get("error") if isinstance(data, dict) else None) or (
                UploadMessages.NO_MEDIA_LINK
            )
            raise _normalize_error_message(message)

        return MediaFile(
            id=self.generator.context.new_id(),
            name=data.get("fileName") or file.name,
            url=data["mediaLink"],
            type=data.get("mimeType") or file.type,
            size=data.get("fileSize") or file.size,
            uploaded_at=self.generator.context.now(),
        )

    def check_health(self) -> bool:
        """Single bounded probe of the health endpoint."""
        try:
            response = self.session.get(
                f"{self.base_url}/health",
                timeout=self.settings.health_timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
            return response.ok
        except requests.RequestException as exc:
            logger.info("Backend server not available, will use mock uploads: %s", exc)
            return False

    def is_backend_reachable(self) -> bool:
        """
        Whether the backend could plausibly be reached from where the client runs.

        A loopback backend is unreachable from a client served by a non-loopback
        host, so the probe is skipped entirely in that case.
        """
        backend_host = urlsplit(self.base_url).hostname
        page_host = self.settings.page_host
        if page_host and not is_loopback_host(page_host) and is_loopback_host(backend_host):
            return False
        return True

    def upload_file_with_fallback(self, file: LocalFile) -> MediaFile:
        """Real upload when possible, simulated upload otherwise. Never raises."""
        if not self.is_backend_reachable():
            logger.info(
                "Using mock upload (hosted environment, loopback backend not accessible)"
            )
            return self.generator.mock_upload(file)

        if not self.check_health():
            logger.info("Using mock upload as fallback")
            return self.generator.mock_upload(file)

        try:
            logger.info("Attempting real upload of %s", file.name)
            return self.upload_file(file)
        except UploadError as exc:
            logger.warning("Real upload failed (%s), falling back to mock: %s", exc.kind, exc)
        except Exception:
            logger.exception("Unexpected upload failure, falling back to mock")
        return self.generator.mock_upload(file)

    def probe_status(self) -> UploadServiceStatus:
        """Refreshes and returns the status shown by the upload indicator."""
        self.status = UploadServiceStatus.CHECKING
        healthy = self.is_backend_reachable() and self.check_health()
        self.status = UploadServiceStatus.ACTIVE if healthy else UploadServiceStatus.DEMO
        return self.status

    @staticmethod
    def status_note(status: UploadServiceStatus) -> Optional[str]:
        if status == UploadServiceStatus.DEMO:
            return DEMO_MODE_NOTE
        return None

    @staticmethod
    def _error_from_body(response: requests.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("error")
        return None
