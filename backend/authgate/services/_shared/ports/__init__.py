"""
authgate.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) the credential lifecycle depends
on. They decouple the service layer from Redis, Twilio and the host's user
records.

Modules
-------
- :mod:`kv_store`:
    Defines :class:`~.KeyValueStore`, the shared expiring store holding
    refresh records, blacklist entries and one-time codes.

- :mod:`message_channel`:
    Defines :class:`~.MessageChannel`, the out-of-band delivery channel.

- :mod:`identity_directory`:
    Defines :class:`~.IdentityDirectory` and :class:`~.IdentityRecord`,
    the lookup-only view over persistent user/staff records.

Design Notes
------------
Concrete adapters live under ``authgate.infra``. In-memory doubles live next
to each port and back the unit tests.
"""

from __future__ import annotations

from .identity_directory import IdentityDirectory, IdentityRecord, InMemoryIdentityDirectory
from .kv_store import InMemoryKeyValueStore, KeyValueStore
from .message_channel import InMemoryMessageChannel, MessageChannel, SentMessage

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "MessageChannel",
    "InMemoryMessageChannel",
    "SentMessage",
    "IdentityDirectory",
    "IdentityRecord",
    "InMemoryIdentityDirectory",
]
