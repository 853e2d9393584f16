"""
Tests for settings validation.
"""

import pytest
from pydantic import ValidationError

from buysoft.config import Settings

SECRET = "config-test-secret-0123456789"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SECRET_KEY", "ENVIRONMENT", "CORS_ORIGINS", "COOKIE_SECURE", "COOKIE_SAMESITE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings(secret_key=SECRET, _env_file=None)
    assert settings.environment == "development"
    assert settings.captcha_ttl_seconds == 300
    assert settings.captcha_length == 4
    assert settings.login_max_attempts == 5
    assert settings.login_attempt_window_seconds == 300
    assert settings.login_lockout_seconds == 3600
    assert settings.smms_api_url == "https://sm.ms/api/v2"
    assert settings.is_production is False
    assert settings.is_sqlite is True


def test_secret_is_required():
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_short_secret_is_rejected():
    with pytest.raises(ValidationError):
        Settings(secret_key="too-short", _env_file=None)


@pytest.mark.parametrize("secret", ["default-secret-key", "CHANGEME"])
def test_known_insecure_secret_is_rejected(secret):
    # Pad short ones past the length check so the value check is exercised.
    with pytest.raises(ValidationError):
        Settings(secret_key=secret if len(secret) >= 16 else secret + " " * 16, _env_file=None)


def test_secret_from_environment(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", SECRET)
    assert Settings(_env_file=None).secret_key == SECRET


def test_production_requires_https_origins():
    with pytest.raises(ValidationError):
        Settings(
            secret_key=SECRET,
            environment="production",
            cors_origins="http://shop.example.com",
            _env_file=None,
        )

    settings = Settings(
        secret_key=SECRET,
        environment="production",
        cors_origins="https://shop.example.com, https://admin.example.com",
        _env_file=None,
    )
    assert settings.is_production
    assert settings.cors_origins_list == ["https://shop.example.com", "https://admin.example.com"]


def test_samesite_none_requires_secure_cookie():
    with pytest.raises(ValidationError):
        Settings(secret_key=SECRET, cookie_samesite="none", cookie_secure=False, _env_file=None)


def test_log_level_is_normalised():
    assert Settings(secret_key=SECRET, log_level="debug", _env_file=None).log_level == "DEBUG"
    with pytest.raises(ValidationError):
        Settings(secret_key=SECRET, log_level="chatty", _env_file=None)
