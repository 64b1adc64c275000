"""Pytest fixtures wiring the credential lifecycle to in-memory doubles.

Every test gets a fresh store, channel and directory, so state never leaks
between cases. Redis-backed tests use :mod:`fakeredis`; time-dependent tests
use :mod:`freezegun` through the ``freeze_time`` factory.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import fakeredis
import pytest
from authgate.core.config import TestingConfig
from authgate.factory import create_app
from authgate.services._shared.errors import StoreUnavailableError
from authgate.services._shared.ports import (
    IdentityRecord,
    InMemoryIdentityDirectory,
    InMemoryKeyValueStore,
    InMemoryMessageChannel,
)
from authgate.services.auth.service import AuthService
from authgate.services.tokens.signer import CredentialSigner

TEST_SECRET = TestingConfig.JWT_SECRET_KEY


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose operations can be switched to fail.

    Notes
    -----
    Add operation names (``"set"``, ``"get"``, ...) to :attr:`failing` to make
    them raise :class:`StoreUnavailableError`.
    """

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()

    def _check(self, op: str) -> None:
        if op in self.failing:
            raise StoreUnavailableError(f"{op} unavailable")

    def set(self, key: str, value: str, *, ttl: int) -> None:
        self._check("set")
        super().set(key, value, ttl=ttl)

    def get(self, key: str) -> str | None:
        self._check("get")
        return super().get(key)

    def delete(self, key: str) -> bool:
        self._check("delete")
        return super().delete(key)

    def get_and_delete(self, key: str) -> str | None:
        self._check("get_and_delete")
        return super().get_and_delete(key)

    def delete_if_equals(self, key: str, expected: str) -> bool:
        self._check("delete_if_equals")
        return super().delete_if_equals(key, expected)

    def increment(self, key: str, *, ttl: int) -> int:
        self._check("increment")
        return super().increment(key, ttl=ttl)

    def ping(self) -> bool:
        return "ping" not in self.failing


@pytest.fixture()
def store() -> FlakyStore:
    """Fresh in-memory store (healthy until told otherwise)."""
    return FlakyStore()


@pytest.fixture()
def channel() -> InMemoryMessageChannel:
    return InMemoryMessageChannel()


@pytest.fixture()
def directory() -> InMemoryIdentityDirectory:
    """Directory with one active user, one driver and one inactive account."""
    return InMemoryIdentityDirectory(
        [
            IdentityRecord(subject="u1", phone_number="+15550100001", role="user"),
            IdentityRecord(
                subject="d1",
                phone_number="+15550100002",
                role="driver",
                attributes={"vehicle": "scooter"},
            ),
            IdentityRecord(subject="x1", phone_number="+15550100003", role="user", active=False),
        ]
    )


@pytest.fixture()
def signer() -> CredentialSigner:
    return CredentialSigner(TEST_SECRET)


@pytest.fixture()
def service(store, signer, channel, directory) -> AuthService:
    """AuthService wired to in-memory doubles with default lifetimes."""
    return AuthService(store=store, signer=signer, channel=channel, directory=directory)


@pytest.fixture()
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis(decode_responses=True)
    r.flushall()
    return r


@pytest.fixture()
def app(store, channel, directory):
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application using :class:`TestingConfig` and the in-memory doubles.
    """
    os.environ.pop("REDIS_URL", None)
    application = create_app(TestingConfig, store=store, channel=channel, directory=directory)
    application.logger.setLevel("WARNING")
    return application


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01") as frozen:
    ...         frozen.tick(60)
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01")

    return _factory
