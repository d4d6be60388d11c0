"""Pytest configuration and shared fixtures."""

import pytest

from betterbets.config.settings import AppConfig


@pytest.fixture
def config(monkeypatch) -> AppConfig:
    """AppConfig built from defaults only (no .env, no ambient env vars)."""
    for var in ("ENV", "BETTERBETS_API_KEY", "CORS_ORIGINS", "ALLOWED_SPORTS"):
        monkeypatch.delenv(var, raising=False)
    return AppConfig(_env_file=None, odds_api_key="test-odds-key")
