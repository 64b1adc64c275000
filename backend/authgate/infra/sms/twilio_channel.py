# comments in English; reST docstrings
from __future__ import annotations

import logging
from dataclasses import dataclass

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from authgate.services._shared.errors import DeliveryFailureError
from authgate.services._shared.ports import MessageChannel

log = logging.getLogger(__name__)


@dataclass(slots=True)
class TwilioSmsChannel(MessageChannel):
    """
    SMS delivery through the Twilio Messages API.

    :param client: Authenticated :class:`twilio.rest.Client`.
    :param from_number: Sender number registered with Twilio.
    """

    client: Client
    from_number: str

    @classmethod
    def from_credentials(cls, account_sid: str, auth_token: str, from_number: str) -> TwilioSmsChannel:
        """Build a channel from raw account credentials."""
        if not (account_sid and auth_token and from_number):
            raise RuntimeError("Twilio credentials are incomplete (TWILIO_* settings)")
        return cls(client=Client(account_sid, auth_token), from_number=from_number)

    def send(self, destination: str, message: str) -> None:
        try:
            result = self.client.messages.create(body=message, from_=self.from_number, to=destination)
        except (TwilioException, OSError) as exc:
            log.warning("sms delivery failed", exc_info=True)
            raise DeliveryFailureError(f"SMS to {destination} failed") from exc
        log.debug("sms sent", extra={"reason": getattr(result, "sid", None)})
