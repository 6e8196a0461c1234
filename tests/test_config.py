"""Tests for environment-driven settings."""

from workout_sync.config import SyncSettings, load_settings
from workout_sync.sdk.intervals import API_URL


def test_defaults(monkeypatch):
    for name in ("SYNC_CACHE_TTL_SECONDS", "SYNC_LIVENESS_WINDOW_SECONDS", "SYNC_HTTP_TIMEOUT_SECONDS",
                 "INTERVALS_API_URL", "SYNC_POOL_LENGTH_METERS", "SYNC_DEFAULT_REPEAT_COUNT"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings == SyncSettings()
    assert settings.cache_ttl_seconds == 300
    assert settings.liveness_window_seconds == 600
    assert settings.intervals_api_url == API_URL


def test_overrides(monkeypatch):
    monkeypatch.setenv("SYNC_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("SYNC_POOL_LENGTH_METERS", "50")
    monkeypatch.setenv("INTERVALS_API_URL", "http://localhost:9999/api/v1")
    settings = load_settings()
    assert settings.cache_ttl_seconds == 60
    assert settings.pool_length_meters == 50
    assert settings.intervals_api_url == "http://localhost:9999/api/v1"
