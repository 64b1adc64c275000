from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from authgate.services._shared.errors import DeliveryFailureError


class MessageChannel(Protocol):
    """Out-of-band delivery channel (SMS) used for one-time codes."""

    def send(self, destination: str, message: str) -> None:
        """
        Deliver ``message`` to ``destination``.

        :raises DeliveryFailureError: When the provider rejects or cannot be reached.
        """


@dataclass(frozen=True)
class SentMessage:
    destination: str
    message: str


class InMemoryMessageChannel(MessageChannel):
    """Outbox-recording channel used in unit tests."""

    def __init__(self) -> None:
        self.outbox: list[SentMessage] = []
        self.fail_next = False

    def send(self, destination: str, message: str) -> None:
        if self.fail_next:
            self.fail_next = False
            raise DeliveryFailureError(f"Simulated delivery failure to {destination}")
        self.outbox.append(SentMessage(destination=destination, message=message))

    def last_to(self, destination: str) -> SentMessage | None:
        """Return the most recent message sent to ``destination``."""
        for sent in reversed(self.outbox):
            if sent.destination == destination:
                return sent
        return None
