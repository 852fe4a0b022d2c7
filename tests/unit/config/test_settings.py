# tests/unit/config/test_settings.py
from __future__ import annotations

from collections.abc import Iterator

import pytest

from tariff_sync.config.settings import Environment, Settings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/app")
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("SYNC_INTERVAL_S", raising=False)
    monkeypatch.delenv("SPREADSHEET_PAGE_NAME", raising=False)

    settings = get_settings()

    assert settings.environment is Environment.DEVELOPMENT
    assert settings.sync_interval_s == 3600
    assert settings.spreadsheet_page_name == "stocks_coefs"
    assert settings.publish_timezone == "Europe/Moscow"
    assert get_settings() is settings


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", " postgresql+asyncpg://u:p@db/app ")
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("SYNC_INTERVAL_S", "900")
    monkeypatch.setenv("METRICS_PORT", "9100")

    settings = Settings()  # type: ignore[call-arg]

    assert settings.database_url == "postgresql+asyncpg://u:p@db/app"
    assert settings.environment.is_production_like
    assert settings.sync_interval_s == 900
    assert settings.metrics_port == 9100


def test_invalid_configuration_raises_runtime_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/app")
    monkeypatch.setenv("SYNC_INTERVAL_S", "5")

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        get_settings()


def test_staging_and_production_are_production_like() -> None:
    assert Environment.STAGING.is_production_like
    assert not Environment.DEVELOPMENT.is_production_like
    assert not Environment.TEST.is_production_like
