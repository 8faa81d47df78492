"""
Pydantic schemas for the upload backend.

Field names are camelCase to match the JSON the browser client expects.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class UploadResponse(BaseModel):
    success: Literal[True] = True
    mediaLink: str
    fileName: str
    fileSize: int
    mimeType: str


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


class HealthResponse(BaseModel):
    status: Literal["OK"] = "OK"
    timestamp: str
    providerInitialized: bool
    provider: Optional[str] = None
