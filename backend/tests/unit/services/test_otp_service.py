# tests/unit/services/test_otp_service.py
from __future__ import annotations

import threading
from datetime import timedelta

import pytest
from authgate.services._shared.errors import (
    DeliveryFailureError,
    MismatchError,
    NotFoundError,
    ServiceError,
    StoreUnavailableError,
)
from authgate.services._shared.keys import otp_attempts_key, otp_key
from authgate.services.otp import service as otp_module
from authgate.services.otp.service import OtpManager, generate_code, normalize_phone

PHONE = "+15550100001"


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def otp(store, channel) -> OtpManager:
    return OtpManager(store=store, channel=channel)


@pytest.fixture()
def fixed_codes(monkeypatch):
    """Make ``generate_code`` return the given codes in order."""

    def _install(*codes: str) -> None:
        values = iter(codes)
        monkeypatch.setattr(otp_module, "generate_code", lambda: next(values))

    return _install


# ------------------------------- Helpers ---------------------------------- #
def test_generate_code_is_six_digits_without_leading_zero():
    for _ in range(500):
        code = generate_code()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("+1 (555) 010-0001", "+15550100001"),
        ("0812 3456 789", "08123456789"),
        ("+62-812.3456.789", "+628123456789"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "+"])
def test_normalize_phone_rejects_empty(raw):
    with pytest.raises(ServiceError):
        normalize_phone(raw)


# -------------------------------- Issue ----------------------------------- #
def test_issue_sends_then_stores(otp, store, channel):
    code = otp.issue("+1 (555) 010-0001")

    sent = channel.last_to(PHONE)
    assert sent is not None
    assert sent.message == f"Your OTP is {code}"
    assert store.get(otp_key(PHONE)) == code
    assert store.ttl(otp_key(PHONE)) == 300


def test_issue_uses_message_template(store, channel):
    otp = OtpManager(store=store, channel=channel, message_template="Code: {code}. Valid 5 min.")
    code = otp.issue(PHONE)
    assert channel.last_to(PHONE).message == f"Code: {code}. Valid 5 min."


def test_delivery_failure_stores_nothing(otp, store, channel):
    channel.fail_next = True

    with pytest.raises(DeliveryFailureError):
        otp.issue(PHONE)

    assert store.get(otp_key(PHONE)) is None
    assert channel.outbox == []


def test_store_failure_after_send_is_reported(otp, store, channel):
    store.failing.add("set")

    with pytest.raises(StoreUnavailableError):
        otp.issue(PHONE)

    assert channel.last_to(PHONE) is not None


def test_reissue_overwrites_previous_code(otp, fixed_codes):
    fixed_codes("111111", "222222")
    otp.issue(PHONE)
    otp.issue(PHONE)

    with pytest.raises(MismatchError):
        otp.verify(PHONE, "111111")
    assert otp.verify(PHONE, "222222") is True


# -------------------------------- Verify ---------------------------------- #
def test_verify_succeeds_exactly_once(otp):
    code = otp.issue(PHONE)

    assert otp.verify(PHONE, code) is True
    with pytest.raises(NotFoundError) as excinfo:
        otp.verify(PHONE, code)
    assert excinfo.value.entity == "OTP"


def test_mismatch_keeps_entry_for_retry(otp, fixed_codes):
    fixed_codes("123456")
    otp.issue(PHONE)

    with pytest.raises(MismatchError):
        otp.verify(PHONE, "654321")
    assert otp.verify(PHONE, "123456") is True


@pytest.mark.parametrize("candidate", [" 123456\n", "123456 ", "\t123456"])
def test_padded_code_is_a_mismatch(otp, store, fixed_codes, candidate):
    fixed_codes("123456")
    otp.issue(PHONE)

    with pytest.raises(MismatchError):
        otp.verify(PHONE, candidate)

    assert store.get(otp_key(PHONE)) == "123456"


def test_attempt_cap_keeps_code_reissued_meanwhile(store, channel, fixed_codes, monkeypatch):
    fixed_codes("123456", "234567")
    otp = OtpManager(store=store, channel=channel, max_attempts=1)
    otp.issue(PHONE)
    increment = store.increment

    def _increment_during_reissue(key, *, ttl):
        value = increment(key, ttl=ttl)
        store.set(otp_key(PHONE), "234567", ttl=300)
        return value

    monkeypatch.setattr(store, "increment", _increment_during_reissue)

    with pytest.raises(MismatchError):
        otp.verify(PHONE, "000000")

    assert store.get(otp_key(PHONE)) == "234567"


def test_verify_normalizes_phone(otp):
    code = otp.issue(PHONE)
    assert otp.verify("+1 555 010 0001", code) is True


def test_verify_unknown_phone(otp):
    with pytest.raises(NotFoundError):
        otp.verify(PHONE, "123456")


def test_code_expires_after_ttl(otp, freeze_time):
    with freeze_time("2024-01-01T00:00:00Z") as frozen:
        code = otp.issue(PHONE)
        frozen.tick(timedelta(seconds=301))
        with pytest.raises(NotFoundError):
            otp.verify(PHONE, code)


def test_attempt_cap_discards_code(store, channel, fixed_codes):
    fixed_codes("123456")
    otp = OtpManager(store=store, channel=channel, max_attempts=3)
    otp.issue(PHONE)

    for _ in range(3):
        with pytest.raises(MismatchError):
            otp.verify(PHONE, "000000")

    assert store.get(otp_attempts_key(PHONE)) is None
    with pytest.raises(NotFoundError):
        otp.verify(PHONE, "123456")


def test_reissue_resets_attempts(store, channel, fixed_codes):
    fixed_codes("123456", "234567")
    otp = OtpManager(store=store, channel=channel, max_attempts=3)
    otp.issue(PHONE)
    for _ in range(2):
        with pytest.raises(MismatchError):
            otp.verify(PHONE, "000000")

    otp.issue(PHONE)

    assert store.get(otp_attempts_key(PHONE)) is None
    with pytest.raises(MismatchError):
        otp.verify(PHONE, "000000")
    assert otp.verify(PHONE, "234567") is True


def test_attempt_cap_disabled(store, channel, fixed_codes):
    fixed_codes("123456")
    otp = OtpManager(store=store, channel=channel, max_attempts=0)
    otp.issue(PHONE)

    for _ in range(10):
        with pytest.raises(MismatchError):
            otp.verify(PHONE, "000000")
    assert otp.verify(PHONE, "123456") is True


def test_lost_race_reports_not_found(otp, store, monkeypatch):
    code = otp.issue(PHONE)
    monkeypatch.setattr(store, "delete_if_equals", lambda key, expected: False)

    with pytest.raises(NotFoundError):
        otp.verify(PHONE, code)


def test_concurrent_verifications_succeed_once(otp):
    code = otp.issue(PHONE)
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    lock = threading.Lock()

    def _attempt() -> None:
        barrier.wait()
        try:
            otp.verify(PHONE, code)
            result = "ok"
        except NotFoundError:
            result = "not_found"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=_attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("not_found") == 7
