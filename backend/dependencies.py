"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from backend.config import get_settings
from backend.storage import MediaProvider, create_media_provider

_media_provider: MediaProvider | None = None
_media_provider_initialized = False


def get_media_provider() -> MediaProvider | None:
    """
    Return the provider selected at startup; None when credentials are missing.

    Initialization is attempted once per process, mirroring a server that checks
    its credentials when it boots.
    """
    global _media_provider, _media_provider_initialized
    if _media_provider_initialized:
        return _media_provider

    _media_provider = create_media_provider(get_settings())
    _media_provider_initialized = True
    return _media_provider


def reset_media_provider() -> None:
    """Forget the cached provider so the next request re-reads settings."""
    global _media_provider, _media_provider_initialized
    _media_provider = None
    _media_provider_initialized = False
