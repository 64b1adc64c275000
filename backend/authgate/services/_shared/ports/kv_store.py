from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Protocol


class KeyValueStore(Protocol):
    """
    Shared expiring key-value store.

    Every write takes a TTL in whole seconds. Single-key operations only;
    no caller relies on cross-key transactions. Implementations raise
    :class:`~authgate.services._shared.errors.StoreUnavailableError` when the
    backend cannot be reached.
    """

    def set(self, key: str, value: str, *, ttl: int) -> None:
        """Write ``value`` under ``key``, replacing any previous value."""

    def get(self, key: str) -> str | None:
        """Return the live value for ``key`` or ``None``."""

    def delete(self, key: str) -> bool:
        """Remove ``key``. :returns: True if something was removed."""

    def get_and_delete(self, key: str) -> str | None:
        """Atomically read and remove ``key``."""

    def delete_if_equals(self, key: str, expected: str) -> bool:
        """
        Atomically remove ``key`` only while it still holds ``expected``.

        :returns: True if this call removed the entry.
        """

    def increment(self, key: str, *, ttl: int) -> int:
        """Increment an integer counter, (re)arming its TTL. :returns: New value."""

    def ping(self) -> bool:
        """Return whether the backend answers."""

    def close(self) -> None:
        """Release connections held by the store."""


@dataclass(frozen=True)
class _Entry:
    value: str
    expires_at: float


class InMemoryKeyValueStore(KeyValueStore):
    """
    Process-local store with lazy expiry.

    .. note::
       Uses a threading lock so compound operations stay atomic. Suitable for
       unit tests and single-worker development only.
    """

    def __init__(self) -> None:
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _now() -> float:
        return time.time()

    def _live(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._now():
            del self._data[key]
            return None
        return entry

    # -------------------------- API ----------------------------

    def set(self, key: str, value: str, *, ttl: int) -> None:
        with self._lock:
            self._data[key] = _Entry(value=value, expires_at=self._now() + max(1, int(ttl)))

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            return entry.value if entry else None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None and self._data.pop(key, None) is not None

    def get_and_delete(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            del self._data[key]
            return entry.value

    def delete_if_equals(self, key: str, expected: str) -> bool:
        with self._lock:
            entry = self._live(key)
            if entry is None or entry.value != expected:
                return False
            del self._data[key]
            return True

    def increment(self, key: str, *, ttl: int) -> int:
        with self._lock:
            entry = self._live(key)
            value = int(entry.value) + 1 if entry else 1
            self._data[key] = _Entry(value=str(value), expires_at=self._now() + max(1, int(ttl)))
            return value

    def ttl(self, key: str) -> int | None:
        """Remaining lifetime in whole seconds (test helper)."""
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            return int(round(entry.expires_at - self._now()))

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        with self._lock:
            self._data.clear()
