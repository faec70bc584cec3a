import logging

import pytest

from app.core.config import settings, validate_settings


def test_missing_weather_key_only_warns_in_production(monkeypatch, caplog):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "WEATHER_API_KEY", "")

    with caplog.at_level(logging.WARNING):
        assert validate_settings() is True
    assert "WEATHER_API_KEY is not set" in caplog.text


def test_fallback_jwt_secret_rejected_in_production(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "JWT_SECRET", None)

    with pytest.raises(ValueError, match="JWT_SECRET is required in production"):
        validate_settings()
