from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sessionauth.services._shared.ports.token_store import TokenStore, refresh_set_key

log = logging.getLogger(__name__)

DEFAULT_SWEEP_SECONDS = 60.0


@dataclass(slots=True)
class _Scalar:
    value: str
    expires_at: float


@dataclass(slots=True)
class _Set:
    # member -> absolute expiry (epoch seconds)
    members: dict[str, float] = field(default_factory=dict)


class InMemoryTokenStore(TokenStore):
    """
    Process-local token store used when Redis is not available.

    State lives in one dict guarded by a :class:`threading.Lock`; expiry is
    evaluated on read and by an owned sweeper thread that :meth:`dispose`
    stops. Nothing is shared with other processes and everything is lost on
    restart, so construction logs a degraded-mode warning.

    :param sweep_interval: Seconds between background sweeps. ``0`` disables
        the sweeper (expired entries are still ignored on read).
    """

    def __init__(self, *, sweep_interval: float = DEFAULT_SWEEP_SECONDS) -> None:
        self._data: dict[str, _Scalar | _Set] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None

        log.warning(
            "token_store running in degraded in-memory mode: "
            "sessions are lost on restart and not shared across instances",
            extra={"store": "memory"},
        )

        if sweep_interval > 0:
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(float(sweep_interval),),
                name="token-store-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _now() -> float:
        return datetime.now(UTC).timestamp()

    def _live_scalar(self, key: str, now: float) -> _Scalar | None:
        entry = self._data.get(key)
        if not isinstance(entry, _Scalar):
            return None
        if entry.expires_at <= now:
            del self._data[key]
            return None
        return entry

    def _live_set(self, key: str, now: float) -> _Set | None:
        """Return the set at ``key`` pruned of expired members (``None`` if empty)."""
        entry = self._data.get(key)
        if not isinstance(entry, _Set):
            return None
        self._prune(key, entry, now)
        return entry if entry.members else None

    def _prune(self, key: str, entry: _Set, now: float) -> int:
        expired = [m for m, exp in entry.members.items() if exp <= now]
        for m in expired:
            del entry.members[m]
        if not entry.members:
            self._data.pop(key, None)
        return len(expired)

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            removed = self.sweep()
            if removed:
                log.debug("token_store.sweep removed=%s", removed, extra={"store": "memory"})

    # -------------------------- API ----------------------------

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = _Scalar(value=value, expires_at=self._now() + max(1, int(ttl_seconds)))

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_scalar(key, self._now())
            return entry.value if entry else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def add_to_set(self, key: str, member: str, ttl_seconds: int) -> None:
        with self._lock:
            entry = self._data.get(key)
            if not isinstance(entry, _Set):
                if entry is not None:
                    log.warning(
                        "token_store.add_to_set replaced a scalar value with a fresh set",
                        extra={"store": "memory"},
                    )
                entry = _Set()
                self._data[key] = entry
            entry.members[member] = self._now() + max(1, int(ttl_seconds))

    def get_set(self, key: str) -> list[str]:
        with self._lock:
            entry = self._live_set(key, self._now())
            return list(entry.members) if entry else []

    def remove_from_set(self, key: str, member: str) -> None:
        with self._lock:
            entry = self._data.get(key)
            if not isinstance(entry, _Set):
                return
            entry.members.pop(member, None)
            self._prune(key, entry, self._now())

    def replace_in_set(self, key: str, old: str, new: str, ttl_seconds: int) -> bool:
        with self._lock:
            now = self._now()
            entry = self._live_set(key, now)
            if entry is None or old not in entry.members:
                return False
            del entry.members[old]
            entry.members[new] = now + max(1, int(ttl_seconds))
            return True

    def cleanup_expired_tokens(self, subject_id: int | str) -> int:
        key = refresh_set_key(subject_id)
        with self._lock:
            entry = self._data.get(key)
            if not isinstance(entry, _Set):
                return 0
            return self._prune(key, entry, self._now())

    def sweep(self) -> int:
        """
        Drop every expired scalar and set member.

        :returns: Number of entries removed.
        """
        removed = 0
        with self._lock:
            now = self._now()
            for key, entry in list(self._data.items()):
                if isinstance(entry, _Set):
                    removed += self._prune(key, entry, now)
                elif entry.expires_at <= now:
                    del self._data[key]
                    removed += 1
        return removed

    # ------------------------ lifecycle ------------------------

    def ping(self) -> bool:
        return True

    def dispose(self) -> None:
        self._stop.set()
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=5)
        log.info("token_store.disposed", extra={"store": "memory"})
