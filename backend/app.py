"""
FastAPI application entry point for the upload backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.errors import MediaUploadError
from backend.routes import router
from shared.errors import UploadMessages

logger = logging.getLogger(__name__)


async def _media_upload_error_handler(request: Request, exc: MediaUploadError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Server error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": UploadMessages.INTERNAL_ERROR},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Fusion Issue Tracker Backend", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(MediaUploadError, _media_upload_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.include_router(router)
    return app


app = create_app()
