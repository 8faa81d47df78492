"""
HTTP routes for the upload backend.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from backend.config import ALLOWED_MIME_TYPES, Settings, get_settings
from backend.dependencies import get_media_provider
from backend.errors import MediaUploadError, from_provider_failure
from backend.schemas import ErrorResponse, HealthResponse, UploadResponse
from backend.storage import MediaProvider, provider_label
from shared.errors import UploadErrorKind, UploadMessages

logger = logging.getLogger(__name__)

router = APIRouter()

CHUNK_SIZE = 1024 * 1024

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


async def _spool_to_temp_file(file: UploadFile, settings: Settings) -> tuple[str, int]:
    """Copies the upload to a temp file, enforcing the size limit."""
    size = 0
    fd, temp_path = tempfile.mkstemp(prefix="upload-", dir=settings.upload_tmp_dir)
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := await file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.max_upload_bytes:
                    raise MediaUploadError(
                        UploadErrorKind.FILE_TOO_LARGE, UploadMessages.FILE_TOO_LARGE
                    )
                out.write(chunk)
    except BaseException:
        _remove_temp_file(temp_path)
        raise
    return temp_path, size


def _remove_temp_file(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.error("Error cleaning up temp file %s: %s", path, exc)


@router.get("/health", response_model=HealthResponse)
def health(provider: Optional[MediaProvider] = Depends(get_media_provider)):
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        providerInitialized=provider is not None,
        provider=provider.name if provider else None,
    )


@router.post(
    "/upload-media", response_model=UploadResponse, responses=_ERROR_RESPONSES
)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    provider: Optional[MediaProvider] = Depends(get_media_provider),
    settings: Settings = Depends(get_settings),
):
    """
    Proxies a multipart upload to the configured cloud provider.
    """
    if file is None or not file.filename:
        raise MediaUploadError(UploadErrorKind.NO_FILE_PROVIDED, UploadMessages.NO_FILE)

    mime_type = (file.content_type or "").split(";")[0].strip().lower()
    if mime_type not in ALLOWED_MIME_TYPES:
        raise MediaUploadError(
            UploadErrorKind.INVALID_FILE_TYPE, UploadMessages.INVALID_FILE_TYPE
        )

    # Size is enforced while spooling, before the provider is consulted.
    temp_path, size = await _spool_to_temp_file(file, settings)
    try:
        if provider is None:
            raise MediaUploadError(
                UploadErrorKind.PROVIDER_NOT_CONFIGURED,
                UploadMessages.provider_not_configured(provider_label(settings)),
            )
        logger.info(
            "Uploading file: %s (%.2f MB) via %s",
            file.filename,
            size / 1024 / 1024,
            provider.name,
        )
        media_link = await run_in_threadpool(
            provider.upload_file, temp_path, file.filename, mime_type
        )
    except MediaUploadError:
        raise
    except Exception as exc:
        logger.error("Upload error: %s", exc)
        raise from_provider_failure(exc) from exc
    finally:
        _remove_temp_file(temp_path)

    logger.info("File uploaded successfully: %s", media_link)
    return UploadResponse(
        mediaLink=media_link,
        fileName=file.filename,
        fileSize=size,
        mimeType=mime_type,
    )
