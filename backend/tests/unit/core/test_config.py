"""Unit tests for environment-driven configuration."""

from __future__ import annotations

from datetime import timedelta

import pytest
from authgate.core.config import (
    PLACEHOLDER_SECRET,
    AuthSettings,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_int,
    get_config,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("true", True), ("YES", True), ("on", True), ("0", False), ("off", False)],
)
def test_env_bool(monkeypatch, value, expected):
    monkeypatch.setenv("AUTHGATE_FLAG", value)
    assert env_bool("AUTHGATE_FLAG") is expected


def test_env_bool_default(monkeypatch):
    monkeypatch.delenv("AUTHGATE_FLAG", raising=False)
    assert env_bool("AUTHGATE_FLAG", True) is True


def test_env_int(monkeypatch):
    monkeypatch.setenv("AUTHGATE_NUM", "42")
    assert env_int("AUTHGATE_NUM", 1) == 42
    monkeypatch.setenv("AUTHGATE_NUM", " ")
    assert env_int("AUTHGATE_NUM", 1) == 1


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("testing", TestingConfig),
        ("production", ProductionConfig),
        ("development", DevelopmentConfig),
        ("unknown", DevelopmentConfig),
    ],
)
def test_get_config_selects_class(monkeypatch, name, expected):
    monkeypatch.setenv("APP_ENV", name)
    assert get_config() is expected


def test_production_requires_strong_secret():
    assert ProductionConfig.REQUIRE_STRONG_SECRET is True
    assert TestingConfig.REQUIRE_STRONG_SECRET is False


def test_auth_settings_from_mapping():
    settings = AuthSettings.from_mapping(
        {
            "JWT_SECRET_KEY": "s" * 40,
            "ACCESS_TOKEN_EXPIRES_MINUTES": 5,
            "REFRESH_TOKEN_EXPIRES_DAYS": 30,
            "REFRESH_TOKEN_ROTATION": True,
            "OTP_TTL_SECONDS": 120,
            "OTP_MAX_ATTEMPTS": 0,
        }
    )

    assert settings.jwt_secret == "s" * 40
    assert settings.jwt_algorithm == "HS256"
    assert settings.access_expires == timedelta(minutes=5)
    assert settings.refresh_expires == timedelta(days=30)
    assert settings.rotate_refresh is True
    assert settings.otp_ttl == 120
    assert settings.otp_max_attempts == 0
    assert settings.otp_message_template == "Your OTP is {code}"


def test_auth_settings_defaults():
    settings = AuthSettings.from_mapping({})
    assert settings.jwt_secret == PLACEHOLDER_SECRET
    assert settings.access_expires == timedelta(minutes=15)
    assert settings.refresh_expires == timedelta(days=7)
    assert settings.otp_ttl == 300


def test_auth_settings_rejects_template_without_code():
    with pytest.raises(ValueError, match="code"):
        AuthSettings.from_mapping({"OTP_MESSAGE_TEMPLATE": "Hello"})


@pytest.mark.parametrize("template", ["{code} {app}", "{code} {0}", "{code} {", "{code} {code.digits}"])
def test_auth_settings_rejects_unformattable_template(template):
    with pytest.raises(ValueError, match="not a valid template"):
        AuthSettings.from_mapping({"OTP_MESSAGE_TEMPLATE": template})
