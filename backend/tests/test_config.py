"""Tests for settings loading."""
from lifeline.config import Settings, get_settings
from lifeline.main import app


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.app_name == "LifeLine"
    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert settings.database_required is False
    assert settings.db_retry_delay_seconds == 10.0
    assert settings.location_stale_minutes == 5
    assert settings.nearby_default_radius_km == 10.0
    assert settings.nearby_max_radius_km == 50.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://lifeline:secret@db/lifeline")
    monkeypatch.setenv("DATABASE_REQUIRED", "true")
    monkeypatch.setenv("LOCATION_STALE_MINUTES", "10")
    monkeypatch.setenv("CORS_ORIGINS", '["https://app.lifeline.org"]')

    settings = Settings(_env_file=None)
    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.database_required is True
    assert settings.location_stale_minutes == 10
    assert settings.cors_origins == ["https://app.lifeline.org"]


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_debug_flag_reaches_app():
    assert app.debug is get_settings().debug
