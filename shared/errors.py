# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from enum import StrEnum


class UploadErrorKind(StrEnum):
    NO_FILE_PROVIDED = "NoFileProvided"
    PROVIDER_NOT_CONFIGURED = "ProviderNotConfigured"
    PROVIDER_QUOTA_EXCEEDED = "ProviderQuotaExceeded"
    NETWORK_UNREACHABLE = "NetworkUnreachable"
    TIMEOUT = "Timeout"
    INVALID_FILE_TYPE = "InvalidFileType"
    FILE_TOO_LARGE = "FileTooLarge"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    UNKNOWN = "Unknown"


class UploadMessages:
    """User-visible messages for upload failures."""

    NO_FILE = "No file uploaded"
    INVALID_FILE_TYPE = (
        "Invalid file type. Only images, videos, and documents are allowed."
    )
    FILE_TOO_LARGE = "File too large. Maximum size is 50MB."
    PROVIDER_CONFIG_ERROR = "Upload provider configuration error. Please check server setup."
    QUOTA_EXCEEDED = "Upload quota exceeded. Please try again later."
    UPLOAD_FAILED = "Upload failed. Please try again."
    INTERNAL_ERROR = "Internal server error"

    TIMEOUT = "Upload timeout. Please try with a smaller file."
    UNREACHABLE = "Unable to connect to upload service."
    SERVICE_UNAVAILABLE = (
        "Upload service temporarily unavailable. Please try again later."
    )
    NO_MEDIA_LINK = "Upload failed - no media link received"

    @staticmethod
    def provider_not_configured(provider_label: str) -> str:
        return f"{provider_label} not configured. Please check your credentials."


def classify_error_text(text: str) -> UploadErrorKind:
    """Maps a free-text failure description onto an error category."""
    lowered = (text or "").lower()
    if "credentials" in lowered or "not configured" in lowered or "configuration" in lowered:
        return UploadErrorKind.PROVIDER_NOT_CONFIGURED
    if "quota" in lowered or "limit" in lowered:
        return UploadErrorKind.PROVIDER_QUOTA_EXCEEDED
    return UploadErrorKind.UNKNOWN
