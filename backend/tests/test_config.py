from tiktok_ingest.config import Settings, build_extractor_config


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("BROWSER_MAX_PAGES", "2")
    monkeypatch.setenv("SCROLL_CYCLES", "5")
    monkeypatch.setenv("MEDIA_HOST_BACKEND", "azure")

    settings = Settings()

    assert settings.browser_max_pages == 2
    assert settings.scroll_cycles == 5
    assert settings.media_host_backend == "azure"
    assert settings.username_max_attempts == 1000


def test_build_extractor_config(monkeypatch):
    monkeypatch.setenv("TIKTOK_BASE_URL", "https://tiktok.test")
    monkeypatch.setenv("NAVIGATION_RETRIES", "0")

    config = build_extractor_config(Settings())

    assert config["base_url"] == "https://tiktok.test"
    assert config["navigation_retries"] == 0
    assert config["settle_seconds"] == 3.0
    assert config["selector_timeout_ms"] == 5000
