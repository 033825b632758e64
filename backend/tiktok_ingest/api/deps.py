"""API dependencies."""
from functools import lru_cache
from hmac import compare_digest

from fastapi import Header, HTTPException, status

from tiktok_ingest.config import build_extractor_config, get_settings
from tiktok_ingest.extractors import BaseExtractor, BrowserManager, TikTokExtractor
from tiktok_ingest.services import ImportService, MediaTransfer, SqlStorage, Storage


def require_api_key(authorization: str | None = Header(default=None)) -> None:
    """Require a valid bearer API key on every protected endpoint."""
    settings = get_settings()
    if not settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API key not configured",
        )
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
        )
    token = authorization.removeprefix("Bearer ").strip()
    if not token or not compare_digest(token, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )


@lru_cache
def get_browser_manager() -> BrowserManager:
    """Process-wide browser; launched lazily on first use."""
    return BrowserManager.from_settings(get_settings())


@lru_cache
def get_storage() -> Storage:
    return SqlStorage()


@lru_cache
def get_media_transfer() -> MediaTransfer:
    """Shared download session and media host."""
    return MediaTransfer.from_settings(get_settings())


@lru_cache
def get_extractor() -> BaseExtractor:
    return TikTokExtractor(get_browser_manager(), build_extractor_config(get_settings()))


@lru_cache
def get_import_service() -> ImportService:
    """One service per process so per-creator locks are shared across requests."""
    return ImportService(
        extractor=get_extractor(),
        storage=get_storage(),
        media_transfer=get_media_transfer(),
        max_username_attempts=get_settings().username_max_attempts,
    )
