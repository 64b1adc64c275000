from __future__ import annotations

import math
from datetime import UTC, datetime

from authgate.services._shared.ports import KeyValueStore


class BaseService:
    """
    Base class for credential lifecycle services.

    Responsibilities
    ----------------
    * Hold the shared :class:`KeyValueStore` handed in at construction.
    * Offer a single clock so every component agrees on "now".
    * Keep services thin, orchestration-only, no web/Redis leakage.

    Notes
    -----
    Services never reach for a module-level client; the runtime passes the
    store by reference.
    """

    def __init__(self, *, store: KeyValueStore) -> None:
        """
        Initialize the base service.

        :param store: Shared expiring key-value store.
        :type store: KeyValueStore
        """
        self.store = store

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    @classmethod
    def seconds_until(cls, moment: datetime) -> int:
        """
        Whole seconds left until ``moment``, rounded up; ``0`` if already past.

        :param moment: Timezone-aware instant.
        :returns: Remaining lifetime in seconds.
        """
        remaining = (moment - cls.now_utc()).total_seconds()
        return max(0, math.ceil(remaining))
