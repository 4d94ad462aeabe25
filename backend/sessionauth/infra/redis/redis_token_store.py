from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import redis  # type: ignore[import-untyped]

from sessionauth.services._shared.errors import TokenStoreError
from sessionauth.services._shared.ports.token_store import TokenStore, refresh_set_key

log = logging.getLogger(__name__)


def _s(value: bytes | str) -> str:
    """Normalize a Redis reply to ``str`` whatever ``decode_responses`` is."""
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


def _key_kind(key: str) -> str:
    """Namespace of a key, safe to log (blacklist keys embed whole tokens)."""
    return key.split(":", 1)[0]


@dataclass(slots=True)
class RedisTokenStore(TokenStore):
    """
    Redis-backed token store shared by every service instance.

    Layout
    ------
    - Scalars: plain strings written with ``SET key value EX ttl``.
    - Sets: sorted sets whose score is each member's absolute expiry
      (epoch seconds). Reads ignore members whose score has passed; the key
      itself expires with its latest member.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _now() -> float:
        return time.time()

    @contextmanager
    def _translate_errors(self, op: str, key: str) -> Iterator[None]:
        """Turn connectivity/command failures into :class:`TokenStoreError`."""
        try:
            yield
        except redis.RedisError as exc:
            log.error(
                "token_store.%s failed",
                op,
                extra={"store": "redis", "reason": type(exc).__name__},
                exc_info=True,
            )
            raise TokenStoreError(f"Token store unavailable during {op} ({_key_kind(key)})") from exc

    def _latest_expiry(self, pipe: redis.client.Pipeline, key: str, floor: float) -> float:
        """Highest member expiry currently stored at ``key`` (at least ``floor``)."""
        top = pipe.zrange(key, -1, -1, withscores=True)
        if top:
            return max(floor, float(top[0][1]))
        return floor

    # -------------------- scalars --------------------

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._translate_errors("set", key):
            self.r.set(key, value, ex=max(1, int(ttl_seconds)))
        log.debug("token_store.set", extra={"store": "redis"})

    def get(self, key: str) -> str | None:
        with self._translate_errors("get", key):
            try:
                value = self.r.get(key)
            except redis.ResponseError:
                # WRONGTYPE: the key holds a set, not a scalar
                return None
        return _s(value) if value is not None else None

    def delete(self, key: str) -> None:
        with self._translate_errors("delete", key):
            self.r.delete(key)

    # -------------------- sets -----------------------

    def add_to_set(self, key: str, member: str, ttl_seconds: int) -> None:
        """
        Add ``member`` with its own expiry.

        Runs under ``WATCH`` so a concurrent writer cannot interleave between
        the type check and the write; a scalar at ``key`` is reset to a set.
        """
        expires_at = self._now() + max(1, int(ttl_seconds))
        with self._translate_errors("add_to_set", key):
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        kind = _s(p.type(key))
                        latest = expires_at
                        if kind == "zset":
                            latest = self._latest_expiry(p, key, expires_at)

                        p.multi()
                        if kind not in ("none", "zset"):
                            p.delete(key)
                        p.zadd(key, {member: expires_at})
                        p.expireat(key, math.ceil(latest))
                        p.execute()
                    break
                except redis.WatchError:
                    # Concurrent modification detected; retry loop
                    continue

        if kind not in ("none", "zset"):
            log.warning(
                "token_store.add_to_set replaced a %s value with a fresh set",
                kind,
                extra={"store": "redis"},
            )

    def get_set(self, key: str) -> list[str]:
        with self._translate_errors("get_set", key):
            try:
                members = self.r.zrangebyscore(key, f"({self._now()}", "+inf")
            except redis.ResponseError:
                return []
        return [_s(m) for m in members]

    def remove_from_set(self, key: str, member: str) -> None:
        """Remove ``member`` and drop already-expired ones; Redis deletes empty keys."""
        with self._translate_errors("remove_from_set", key):
            try:
                with self.r.pipeline(transaction=True) as p:
                    p.zrem(key, member)
                    p.zremrangebyscore(key, "-inf", self._now())
                    p.execute()
            except redis.ResponseError:
                return

    def replace_in_set(self, key: str, old: str, new: str, ttl_seconds: int) -> bool:
        """
        Atomically consume ``old`` and add ``new``.

        This uses Redis WATCH/MULTI/EXEC (optimistic locking):
        - Check ``old`` is a live member.
        - Remove it and add ``new`` with a fresh expiry in one transaction.
        - If another client touched the set meanwhile, re-check from scratch,
          so exactly one of two concurrent callers can consume ``old``.
        """
        with self._translate_errors("replace_in_set", key):
            while True:
                now = self._now()
                expires_at = now + max(1, int(ttl_seconds))
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        try:
                            score = p.zscore(key, old)
                        except redis.ResponseError:
                            p.unwatch()
                            return False
                        if score is None or float(score) <= now:
                            p.unwatch()
                            return False
                        latest = self._latest_expiry(p, key, expires_at)

                        p.multi()
                        p.zrem(key, old)
                        p.zadd(key, {new: expires_at})
                        p.expireat(key, math.ceil(latest))
                        p.execute()
                    return True
                except redis.WatchError:
                    continue

    def cleanup_expired_tokens(self, subject_id: int | str) -> int:
        key = refresh_set_key(subject_id)
        with self._translate_errors("cleanup_expired_tokens", key):
            try:
                removed = int(self.r.zremrangebyscore(key, "-inf", self._now()))
            except redis.ResponseError:
                return 0
        if removed:
            log.debug(
                "token_store.cleanup removed=%s",
                removed,
                extra={"store": "redis", "subject_id": str(subject_id)},
            )
        return removed

    # -------------------- lifecycle ------------------

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except redis.RedisError:
            return False

    def dispose(self) -> None:
        self.r.close()
        log.info("token_store.disposed", extra={"store": "redis"})
