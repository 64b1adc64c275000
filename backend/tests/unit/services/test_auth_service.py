# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta

import pytest
from authgate.core.config import AuthSettings
from authgate.services._shared.errors import (
    MismatchError,
    NotFoundError,
    RevokedError,
    ServiceError,
)
from authgate.services._shared.keys import refresh_key
from authgate.services._shared.ports import InMemoryKeyValueStore, InMemoryMessageChannel
from authgate.services.auth.dto import OtpLoginIn, VerifiedIdentity
from authgate.services.auth.service import AuthService
from authgate.services.tokens.dto import Identity, TokenPairOut

U1 = Identity(subject="u1", role="user")


class ExplodingDirectory:
    """Directory double whose lookups always fail."""

    def get(self, subject):
        raise ConnectionError("directory down")

    def find_by_phone(self, phone_number):
        raise ConnectionError("directory down")


# -------------------------------- Tests ----------------------------------- #
def test_refresh_logout_scenario(service, store, monkeypatch, freeze_time):
    """Refresh for u1 under record t1, refresh, logout, then refresh fails."""
    monkeypatch.setattr(service.issuer, "new_token_id", lambda: "t1")

    with freeze_time("2024-01-01T00:00:00Z"):
        issued = service.issue_refresh_token(Identity(subject="u1"))

        assert issued.token_id == "t1"
        assert store.get(refresh_key("t1")) == "u1"
        assert store.ttl(refresh_key("t1")) == 7 * 24 * 3600

        out = service.refresh(issued.token)
        assert service.verify_access(out.access_token).subject == "u1"

        result = service.logout(refresh_token=issued.token)
        assert result.refresh_revoked is True
        assert store.get(refresh_key("t1")) is None

        with pytest.raises(NotFoundError):
            service.refresh(issued.token)


def test_issue_token_pair(service):
    pair = service.issue_token_pair(U1)

    assert isinstance(pair, TokenPairOut)
    assert service.verify_access(pair.access_token) == U1
    assert service.verify_access(service.refresh(pair.refresh_token).access_token) == U1


def test_logout_both_tokens(service):
    pair = service.issue_token_pair(U1)

    result = service.logout(access_token=pair.access_token, refresh_token=pair.refresh_token)

    assert result.refresh_revoked and result.access_blacklisted
    with pytest.raises(RevokedError):
        service.verify_access(pair.access_token)
    with pytest.raises(NotFoundError):
        service.refresh(pair.refresh_token)


def test_otp_round_trip(service, channel):
    code = service.issue_otp("+15550100001")

    assert channel.last_to("+15550100001").message.endswith(code)
    assert service.verify_otp("+15550100001", code) is True
    with pytest.raises(NotFoundError):
        service.verify_otp("+15550100001", code)


def test_login_with_otp_issues_pair_with_role(service, channel):
    code = service.issue_otp("+1 555 010 0002")

    pair = service.login_with_otp(OtpLoginIn(phone_number="+15550100002", code=code))

    assert service.verify_access(pair.access_token) == Identity(subject="d1", role="driver")


def test_login_with_otp_wrong_code(service):
    service.issue_otp("+15550100001")
    with pytest.raises(MismatchError):
        service.login_with_otp(OtpLoginIn(phone_number="+15550100001", code="000000x"))


def test_login_with_otp_unknown_phone(service):
    code = service.issue_otp("+15559999999")
    with pytest.raises(NotFoundError) as excinfo:
        service.login_with_otp(OtpLoginIn(phone_number="+15559999999", code=code))
    assert excinfo.value.entity == "Identity"


def test_login_with_otp_inactive_identity(service):
    code = service.issue_otp("+15550100003")
    with pytest.raises(ServiceError, match="inactive"):
        service.login_with_otp(OtpLoginIn(phone_number="+15550100003", code=code))


def test_login_with_otp_requires_directory(store, signer, channel):
    service = AuthService(store=store, signer=signer, channel=channel)
    with pytest.raises(ServiceError, match="directory"):
        service.login_with_otp(OtpLoginIn(phone_number="+15550100001", code="123456"))


def test_whoami_enriches_with_directory_record(service):
    token = service.issue_access_token(Identity(subject="d1", role="driver"))

    who = service.whoami(token)

    assert isinstance(who, VerifiedIdentity)
    assert who.subject == "d1"
    assert who.record is not None
    assert who.record.attributes == {"vehicle": "scooter"}


def test_whoami_without_record(service):
    who = service.whoami(service.issue_access_token(Identity(subject="ghost")))
    assert who.identity == Identity(subject="ghost")
    assert who.record is None


def test_whoami_directory_failure_does_not_deny(store, signer, channel):
    service = AuthService(store=store, signer=signer, channel=channel, directory=ExplodingDirectory())
    who = service.whoami(service.issue_access_token(U1))
    assert who.identity == U1
    assert who.record is None


def test_whoami_respects_blacklist(service):
    token = service.issue_access_token(U1)
    service.logout(access_token=token)
    with pytest.raises(RevokedError):
        service.whoami(token)


def test_from_settings_applies_lifetimes_and_rotation(freeze_time):
    settings = AuthSettings(
        jwt_secret="settings-secret-key-with-enough-entropy",
        access_expires=timedelta(minutes=1),
        refresh_expires=timedelta(days=1),
        rotate_refresh=True,
        otp_max_attempts=2,
    )
    service = AuthService.from_settings(
        settings,
        store=InMemoryKeyValueStore(),
        channel=InMemoryMessageChannel(),
    )

    with freeze_time("2024-01-01T00:00:00Z"):
        issued = service.issue_refresh_token(U1)
        assert issued.expires_at.isoformat() == "2024-01-02T00:00:00+00:00"
        out = service.refresh(issued.token)
        assert out.refresh_token is not None
        claims = service.signer.verify(out.access_token)
        assert claims.expires_at - claims.issued_at == 60
    assert service.otp.max_attempts == 2


def test_ping_reports_store_health(service, store):
    assert service.ping() is True
    store.failing.add("ping")
    assert service.ping() is False
