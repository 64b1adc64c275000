"""One-time code issuance and single-use verification."""

from __future__ import annotations

import hmac
import logging
import re
import secrets

from authgate.services._shared.base import BaseService
from authgate.services._shared.errors import (
    MismatchError,
    NotFoundError,
    ServiceError,
)
from authgate.services._shared.keys import otp_attempts_key, otp_key
from authgate.services._shared.ports import KeyValueStore, MessageChannel

log = logging.getLogger(__name__)

OTP_ENTITY = "OTP"
CODE_MIN = 100000
CODE_MAX = 999999

_PHONE_STRIP = re.compile(r"[^0-9+]")


def normalize_phone(phone_number: str) -> str:
    """
    Strip everything but digits and ``+`` from ``phone_number``.

    :raises ServiceError: Nothing usable is left.
    """
    normalized = _PHONE_STRIP.sub("", phone_number or "")
    if not normalized.strip("+"):
        raise ServiceError("Phone number is required")
    return normalized


def generate_code() -> str:
    """Uniform 6-digit code without a leading zero."""
    return str(secrets.randbelow(CODE_MAX - CODE_MIN + 1) + CODE_MIN)


class OtpManager(BaseService):
    """
    Issues and verifies phone one-time codes.

    Ordering
    --------
    ``issue`` sends first and stores only after the channel confirmed
    delivery: a failed send leaves no code behind, and a code the user
    received is never silently missing from the store (a store failure at
    that point surfaces as :class:`StoreUnavailableError`).

    Attempts
    --------
    With ``max_attempts > 0`` a counter ``otp_attempts:{phone}`` tracks
    mismatches; reaching the cap discards the code.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        channel: MessageChannel,
        ttl: int = 300,
        max_attempts: int = 5,
        message_template: str = "Your OTP is {code}",
    ) -> None:
        super().__init__(store=store)
        self.channel = channel
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.message_template = message_template

    def issue(self, phone_number: str) -> str:
        """
        Generate a code, deliver it, then store it (overwriting any prior one).

        :param phone_number: Destination; normalized before use.
        :returns: The issued code.
        :raises DeliveryFailureError: Channel failed; nothing was stored.
        :raises StoreUnavailableError: Code was delivered but could not be stored.
        """
        phone = normalize_phone(phone_number)
        code = generate_code()

        self.channel.send(phone, self.message_template.format(code=code))

        self.store.set(otp_key(phone), code, ttl=self.ttl)
        self.store.delete(otp_attempts_key(phone))
        log.info("otp issued", extra={"subject": phone})
        return code

    def verify(self, phone_number: str, candidate: str) -> bool:
        """
        Consume the code for ``phone_number`` if ``candidate`` matches.

        :returns: ``True`` on success.
        :raises NotFoundError: No live code (never issued, expired, consumed,
            or taken by a concurrent verification).
        :raises MismatchError: Wrong code; the entry stays for a retry unless
            the attempt cap was just reached.
        """
        phone = normalize_phone(phone_number)
        key = otp_key(phone)

        stored = self.store.get(key)
        if stored is None:
            raise NotFoundError(OTP_ENTITY, phone)

        if not hmac.compare_digest(stored.encode(), str(candidate).encode()):
            self._record_mismatch(phone, stored)
            raise MismatchError()

        if not self.store.delete_if_equals(key, stored):
            raise NotFoundError(OTP_ENTITY, phone)

        self.store.delete(otp_attempts_key(phone))
        log.info("otp verified", extra={"subject": phone})
        return True

    def _record_mismatch(self, phone: str, stored: str) -> None:
        if self.max_attempts <= 0:
            log.info("otp mismatch", extra={"subject": phone})
            return
        attempts = self.store.increment(otp_attempts_key(phone), ttl=self.ttl)
        log.info("otp mismatch", extra={"subject": phone, "reason": f"attempt {attempts}"})
        if attempts >= self.max_attempts:
            # a code reissued meanwhile is kept
            self.store.delete_if_equals(otp_key(phone), stored)
            self.store.delete(otp_attempts_key(phone))
            log.warning("otp discarded after too many attempts", extra={"subject": phone})
