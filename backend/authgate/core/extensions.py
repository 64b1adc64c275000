"""Process-wide runtime (store, channel, signer, services) and its Flask wiring."""

from __future__ import annotations

import atexit
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from redis.backoff import ExponentialBackoff  # type: ignore[import-untyped]
from redis.exceptions import (  # type: ignore[import-untyped]
    ConnectionError as RedisConnectionError,
)
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from redis.exceptions import TimeoutError as RedisTimeoutError  # type: ignore[import-untyped]
from redis.retry import Retry  # type: ignore[import-untyped]

from authgate.core.config import PLACEHOLDER_SECRET, AuthSettings
from authgate.services._shared.ports import (
    IdentityDirectory,
    InMemoryKeyValueStore,
    KeyValueStore,
    MessageChannel,
)
from authgate.services.auth.service import AuthService

log = logging.getLogger(__name__)

EXTENSION_KEY = "authgate"


def build_redis_client(config: Mapping[str, Any]) -> redis.Redis:
    """Create a Redis client with bounded exponential backoff on connectivity errors.

    Parameters
    ----------
    config: Mapping[str, Any]
        Flask config (or equivalent) holding the ``REDIS_*`` keys.

    Returns
    -------
    redis.Redis
        Client that retries ``REDIS_MAX_RETRIES`` times, sleeping
        ``min(REDIS_BACKOFF_CAP, REDIS_BACKOFF_BASE * 2**n)`` between tries.
    """
    timeout = float(config.get("REDIS_SOCKET_TIMEOUT", 5.0))
    retry = Retry(
        ExponentialBackoff(
            cap=float(config.get("REDIS_BACKOFF_CAP", 3.0)),
            base=float(config.get("REDIS_BACKOFF_BASE", 0.1)),
        ),
        int(config.get("REDIS_MAX_RETRIES", 5)),
    )
    return redis.Redis.from_url(
        config["REDIS_URL"],
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        retry=retry,
        retry_on_error=[RedisConnectionError, RedisTimeoutError],
    )


def build_channel(config: Mapping[str, Any]) -> MessageChannel:
    """Select the SMS backend named by ``SMS_BACKEND``."""
    backend = str(config.get("SMS_BACKEND", "twilio")).strip().lower()
    if backend == "log":
        from authgate.infra.sms.logging_channel import LoggingMessageChannel

        return LoggingMessageChannel()
    if backend == "twilio":
        from authgate.infra.sms.twilio_channel import TwilioSmsChannel

        return TwilioSmsChannel.from_credentials(
            str(config.get("TWILIO_ACCOUNT_SID", "")),
            str(config.get("TWILIO_AUTH_TOKEN", "")),
            str(config.get("TWILIO_PHONE_NUMBER", "")),
        )
    raise RuntimeError(f"Unknown SMS_BACKEND {backend!r}")


@dataclass(slots=True)
class AuthRuntime:
    """Everything built once per process and shared by reference.

    Attributes
    ----------
    settings: AuthSettings
        Typed credential settings.
    store: KeyValueStore
        Shared expiring store.
    channel: MessageChannel
        One-time code delivery channel.
    auth: AuthService
        Facade used by route handlers and CLI commands.
    owns_store: bool
        ``True`` when the runtime created the store and must close it.
    """

    settings: AuthSettings
    store: KeyValueStore
    channel: MessageChannel
    auth: AuthService
    owns_store: bool = False

    @classmethod
    def open(
        cls,
        config: Mapping[str, Any],
        *,
        store: KeyValueStore | None = None,
        channel: MessageChannel | None = None,
        directory: IdentityDirectory | None = None,
    ) -> AuthRuntime:
        """Validate configuration and build the runtime.

        Raises
        ------
        RuntimeError
            Placeholder secret in a deployment that forbids it, unknown SMS
            backend, or Redis unreachable at startup.
        """
        settings = AuthSettings.from_mapping(config)
        if config.get("REQUIRE_STRONG_SECRET") and settings.jwt_secret == PLACEHOLDER_SECRET:
            raise RuntimeError("JWT_SECRET_KEY must be set to a real secret in production")

        owns_store = store is None
        if store is None:
            store = cls._open_store(config)
        if channel is None:
            channel = build_channel(config)

        auth = AuthService.from_settings(settings, store=store, channel=channel, directory=directory)
        return cls(settings=settings, store=store, channel=channel, auth=auth, owns_store=owns_store)

    @staticmethod
    def _open_store(config: Mapping[str, Any]) -> KeyValueStore:
        redis_url = config.get("REDIS_URL")
        if not redis_url:
            log.warning("REDIS_URL not set; using in-process store (single worker only)")
            return InMemoryKeyValueStore()

        from authgate.infra.redis.redis_kv_store import RedisKeyValueStore

        client = build_redis_client(config)
        try:
            client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        return RedisKeyValueStore(client)

    def close(self) -> None:
        """Release the store if this runtime created it."""
        if self.owns_store:
            self.store.close()


def init_app(
    app: Flask,
    *,
    store: KeyValueStore | None = None,
    channel: MessageChannel | None = None,
    directory: IdentityDirectory | None = None,
) -> AuthRuntime:
    """Build the runtime and register it under ``app.extensions["authgate"]``.

    Parameters
    ----------
    app: flask.Flask
        Application whose config drives the runtime.
    store, channel, directory: optional
        Pre-built collaborators (tests, embedding hosts). When omitted they
        are created from configuration.
    """
    runtime = AuthRuntime.open(app.config, store=store, channel=channel, directory=directory)
    app.extensions[EXTENSION_KEY] = runtime
    if runtime.owns_store:
        atexit.register(runtime.close)
    return runtime


def get_runtime(app: Flask | None = None) -> AuthRuntime:
    """Return the runtime bound to ``app`` (defaults to ``current_app``)."""
    target = app or current_app
    runtime = target.extensions.get(EXTENSION_KEY)
    if runtime is None:
        raise RuntimeError("Auth runtime is not initialized. Call init_app() first.")
    return runtime


def get_auth(app: Flask | None = None) -> AuthService:
    """Return the :class:`AuthService` of the current application."""
    return get_runtime(app).auth
