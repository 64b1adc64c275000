"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholder secret shipped for local runs; production refuses to boot with it.
PLACEHOLDER_SECRET: Final[str] = "CHANGE_ME_JWT"


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


def env_float(name: str, default: float) -> float:
    """Parse a float from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return float(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    JWT_SECRET_KEY: str
        Process-wide secret used to sign access and refresh credentials.
    JWT_ALGORITHM: str
        HMAC algorithm handed to PyJWT (``HS256`` by default).
    ACCESS_TOKEN_EXPIRES_MINUTES: int
        Lifetime of access credentials.
    REFRESH_TOKEN_EXPIRES_DAYS: int
        Lifetime of refresh credentials and of their server-side records.
    REFRESH_TOKEN_ROTATION: bool
        When ``True`` every refresh consumes the presented refresh credential
        and hands out a new one.
    OTP_TTL_SECONDS: int
        Validity window of a one-time code.
    OTP_MAX_ATTEMPTS: int
        Failed verifications tolerated before a code is discarded
        (``0`` disables the cap).
    OTP_MESSAGE_TEMPLATE: str
        Text delivered to the phone; must contain ``{code}``.
    REDIS_URL: str
        Connection string for the shared expiring store. Empty selects the
        in-process store (single worker only).
    REDIS_MAX_RETRIES / REDIS_BACKOFF_BASE / REDIS_BACKOFF_CAP: int / float
        Bounded exponential backoff applied by the Redis client before a
        connectivity failure is reported.
    REDIS_SOCKET_TIMEOUT: float
        Connect and command timeout in seconds.
    SMS_BACKEND: str
        ``"twilio"`` for real delivery or ``"log"`` to print codes to the log.
    TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_PHONE_NUMBER: str
        Twilio credentials and sender number.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    DEBUG: bool
        Toggles Flask debug mode.
    TESTING: bool
        Enables Flask testing mode when ``True``.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", PLACEHOLDER_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

    # Credential lifetimes
    ACCESS_TOKEN_EXPIRES_MINUTES = env_int("ACCESS_TOKEN_EXPIRES_MINUTES", 15)
    REFRESH_TOKEN_EXPIRES_DAYS = env_int("REFRESH_TOKEN_EXPIRES_DAYS", 7)
    REFRESH_TOKEN_ROTATION = env_bool("REFRESH_TOKEN_ROTATION", False)

    # One-time codes
    OTP_TTL_SECONDS = env_int("OTP_TTL_SECONDS", 300)
    OTP_MAX_ATTEMPTS = env_int("OTP_MAX_ATTEMPTS", 5)
    OTP_MESSAGE_TEMPLATE = os.getenv("OTP_MESSAGE_TEMPLATE", "Your OTP is {code}")

    # Shared store
    REDIS_URL = os.getenv("REDIS_URL", "")
    REDIS_MAX_RETRIES = env_int("REDIS_MAX_RETRIES", 5)
    REDIS_BACKOFF_BASE = env_float("REDIS_BACKOFF_BASE", 0.1)
    REDIS_BACKOFF_CAP = env_float("REDIS_BACKOFF_CAP", 3.0)
    REDIS_SOCKET_TIMEOUT = env_float("REDIS_SOCKET_TIMEOUT", 5.0)

    # Delivery channel
    SMS_BACKEND = os.getenv("SMS_BACKEND", "twilio")
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER", "")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Startup guard: refuse the placeholder signing secret
    REQUIRE_STRONG_SECRET = False

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and prints one-time codes to the log
    instead of sending SMS unless ``SMS_BACKEND`` says otherwise.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SMS_BACKEND = os.getenv("SMS_BACKEND", "log")


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses the in-process store unless ``TEST_REDIS_URL`` is set.
    - Never talks to Twilio.
    """

    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = "testing-secret-key-with-enough-entropy"
    REDIS_URL = os.getenv("TEST_REDIS_URL", "")
    SMS_BACKEND = "log"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug disabled; the runtime refuses to start while
    ``JWT_SECRET_KEY`` still holds the placeholder value.
    """

    DEBUG = False
    REQUIRE_STRONG_SECRET = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Typed view over the credential-related keys of a Flask config.

    Attributes
    ----------
    jwt_secret: str
        Signing secret.
    jwt_algorithm: str
        PyJWT algorithm name.
    access_expires / refresh_expires: timedelta
        Credential lifetimes.
    rotate_refresh: bool
        Whether the refresh flow rotates refresh credentials.
    otp_ttl: int
        One-time code lifetime in seconds.
    otp_max_attempts: int
        Failed verifications tolerated per code (``0`` = unlimited).
    otp_message_template: str
        SMS body, formatted with ``code``.
    """

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    rotate_refresh: bool = False
    otp_ttl: int = 300
    otp_max_attempts: int = 5
    otp_message_template: str = "Your OTP is {code}"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthSettings:
        """Build settings from ``app.config`` (or any mapping of config keys)."""
        template = str(config.get("OTP_MESSAGE_TEMPLATE", "Your OTP is {code}"))
        if "{code}" not in template:
            raise ValueError("OTP_MESSAGE_TEMPLATE must contain '{code}'")
        try:
            template.format(code="000000")
        except (KeyError, IndexError, ValueError, AttributeError) as exc:
            raise ValueError(f"OTP_MESSAGE_TEMPLATE is not a valid template: {exc!r}") from exc
        return cls(
            jwt_secret=str(config.get("JWT_SECRET_KEY", PLACEHOLDER_SECRET)),
            jwt_algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
            access_expires=timedelta(minutes=int(config.get("ACCESS_TOKEN_EXPIRES_MINUTES", 15))),
            refresh_expires=timedelta(days=int(config.get("REFRESH_TOKEN_EXPIRES_DAYS", 7))),
            rotate_refresh=bool(config.get("REFRESH_TOKEN_ROTATION", False)),
            otp_ttl=int(config.get("OTP_TTL_SECONDS", 300)),
            otp_max_attempts=int(config.get("OTP_MAX_ATTEMPTS", 5)),
            otp_message_template=template,
        )
