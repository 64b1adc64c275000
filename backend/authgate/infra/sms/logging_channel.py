from __future__ import annotations

import logging

from authgate.services._shared.ports import MessageChannel

log = logging.getLogger(__name__)


class LoggingMessageChannel(MessageChannel):
    """Development channel: writes messages to the log instead of sending them."""

    def send(self, destination: str, message: str) -> None:
        log.info("sms to %s: %s", destination, message)
