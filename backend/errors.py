"""
Upload failures raised by the backend and rendered as JSON error bodies.
"""

from __future__ import annotations

from shared.errors import UploadErrorKind, UploadMessages, classify_error_text

_STATUS_BY_KIND = {
    UploadErrorKind.NO_FILE_PROVIDED: 400,
    UploadErrorKind.INVALID_FILE_TYPE: 400,
    UploadErrorKind.FILE_TOO_LARGE: 400,
    UploadErrorKind.PROVIDER_NOT_CONFIGURED: 500,
    UploadErrorKind.PROVIDER_QUOTA_EXCEEDED: 429,
    UploadErrorKind.UNKNOWN: 500,
}


class MediaUploadError(Exception):
    """An upload request that cannot be fulfilled."""

    def __init__(self, kind: UploadErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND.get(self.kind, 500)


def from_provider_failure(error: Exception) -> MediaUploadError:
    """Categorizes an exception raised while talking to a provider."""
    kind = classify_error_text(str(error))
    if kind == UploadErrorKind.PROVIDER_NOT_CONFIGURED:
        return MediaUploadError(kind, UploadMessages.PROVIDER_CONFIG_ERROR)
    if kind == UploadErrorKind.PROVIDER_QUOTA_EXCEEDED:
        return MediaUploadError(kind, UploadMessages.QUOTA_EXCEEDED)
    return MediaUploadError(UploadErrorKind.UNKNOWN, UploadMessages.UPLOAD_FAILED)
