"""Application settings, loaded from environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = "sqlite:///./tiktok_ingest.db"

    # API Auth
    api_key: str = ""

    # App Config
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    # TikTok via Playwright
    tiktok_base_url: str = "https://www.tiktok.com"
    browser_headless: bool = True
    browser_proxy: str = ""
    browser_user_agent: str = ""
    browser_executable_path: str = ""
    browser_timeout_ms: int = 60000
    selector_timeout_ms: int = 5000
    browser_max_pages: int = 4
    search_settle_seconds: float = 3.0
    scroll_cycles: int = 3
    scroll_wait_seconds: float = 2.0
    navigation_retries: int = 2
    navigation_backoff_seconds: float = 1.5

    # Media transfer
    media_download_timeout: int = 60
    media_namespace: str = "tiktok-import"
    media_host_backend: str = "local"
    azure_blob_connection_string: str = ""
    media_local_dir: str = "media"
    media_public_base_url: str = "http://localhost:8000/media"

    # Import
    username_max_attempts: int = 1000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            env_settings,
            dotenv_settings,
            init_settings,
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance"""
    return Settings()


def build_extractor_config(settings: Settings) -> dict:
    """Flatten the browser/extraction settings into an extractor config dict."""
    return {
        "base_url": settings.tiktok_base_url,
        "timeout_ms": settings.browser_timeout_ms,
        "selector_timeout_ms": settings.selector_timeout_ms,
        "settle_seconds": settings.search_settle_seconds,
        "scroll_cycles": settings.scroll_cycles,
        "scroll_wait_seconds": settings.scroll_wait_seconds,
        "navigation_retries": settings.navigation_retries,
        "navigation_backoff_seconds": settings.navigation_backoff_seconds,
    }
