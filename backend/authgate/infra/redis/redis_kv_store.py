# comments in English; reST docstrings
from __future__ import annotations

import logging
from dataclasses import dataclass

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError, WatchError  # type: ignore[import-untyped]

from authgate.services._shared.errors import StoreUnavailableError
from authgate.services._shared.ports import KeyValueStore

log = logging.getLogger(__name__)


def _s(value: bytes | str | None) -> str | None:
    """Normalize a Redis reply to ``str`` whatever ``decode_responses`` says."""
    if value is None:
        return None
    return value.decode() if isinstance(value, bytes) else str(value)


@dataclass(slots=True)
class RedisKeyValueStore(KeyValueStore):
    """
    Redis-backed expiring key-value store.

    Every write uses ``SET ... EX`` so no key is ever persisted without a TTL.
    Connectivity problems (after the client's own retry/backoff) surface as
    :class:`StoreUnavailableError`.

    :param r: A Redis client (already configured).
    """

    r: redis.Redis

    # -------------------- API ------------------------

    def set(self, key: str, value: str, *, ttl: int) -> None:
        try:
            self.r.set(key, value, ex=max(1, int(ttl)))
        except RedisError as exc:
            raise StoreUnavailableError(f"SET {key} failed") from exc

    def get(self, key: str) -> str | None:
        try:
            return _s(self.r.get(key))
        except RedisError as exc:
            raise StoreUnavailableError(f"GET {key} failed") from exc

    def delete(self, key: str) -> bool:
        try:
            return bool(self.r.delete(key))
        except RedisError as exc:
            raise StoreUnavailableError(f"DEL {key} failed") from exc

    def get_and_delete(self, key: str) -> str | None:
        """Read and remove ``key`` in one MULTI/EXEC block."""
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.get(key)
            pipe.delete(key)
            value, _ = pipe.execute()
        except RedisError as exc:
            raise StoreUnavailableError(f"GETDEL {key} failed") from exc
        return _s(value)

    def delete_if_equals(self, key: str, expected: str) -> bool:
        """
        Compare-and-delete using WATCH/MULTI/EXEC (optimistic locking).

        Retries while a concurrent writer touches ``key``; returns ``False``
        as soon as the value no longer matches.
        """
        try:
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        current = _s(p.get(key))
                        if current is None or current != expected:
                            p.unwatch()
                            return False
                        p.multi()
                        p.delete(key)
                        deleted = p.execute()
                        return bool(deleted and deleted[0])
                except WatchError:
                    # Key changed between WATCH and EXEC; re-evaluate.
                    log.debug("compare-and-delete retry", extra={"reason": "watch"})
                    continue
        except RedisError as exc:
            raise StoreUnavailableError(f"compare-and-delete {key} failed") from exc

    def increment(self, key: str, *, ttl: int) -> int:
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.incr(key)
            pipe.expire(key, max(1, int(ttl)))
            value, _ = pipe.execute()
        except RedisError as exc:
            raise StoreUnavailableError(f"INCR {key} failed") from exc
        return int(value)

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except RedisError:
            log.warning("redis ping failed", exc_info=True)
            return False

    def close(self) -> None:
        try:
            self.r.close()
        except RedisError:
            log.warning("redis close failed", exc_info=True)
