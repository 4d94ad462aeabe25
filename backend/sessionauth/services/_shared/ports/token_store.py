from __future__ import annotations

from typing import Protocol

REFRESH_SET_PREFIX = "refresh:"
BLACKLIST_PREFIX = "blacklist:"


def refresh_set_key(subject_id: int | str) -> str:
    """Key of the per-subject set of live refresh tokens."""
    return f"{REFRESH_SET_PREFIX}{subject_id}"


def blacklist_key(token: str) -> str:
    """Key of the revocation marker for one encoded token."""
    return f"{BLACKLIST_PREFIX}{token}"


class TokenStore(Protocol):
    """
    Key/value + set storage with per-entry TTL.

    The store holds no business logic: it does not know what a token is.
    Implementations raise :class:`~sessionauth.services._shared.errors.TokenStoreError`
    when the backend is unreachable. Removal operations are idempotent.
    """

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Upsert a scalar with expiry, replacing any scalar or set at ``key``."""

    def get(self, key: str) -> str | None:
        """Return the scalar at ``key``; ``None`` when absent, expired or a set."""

    def delete(self, key: str) -> None:
        """Remove ``key`` whatever it holds. No-op when missing."""

    def add_to_set(self, key: str, member: str, ttl_seconds: int) -> None:
        """
        Add ``member`` to the set at ``key``, live for ``ttl_seconds``.

        A scalar found at ``key`` is discarded and replaced by a fresh set.
        """

    def get_set(self, key: str) -> list[str]:
        """Return the live members of the set at ``key`` (``[]`` when none)."""

    def remove_from_set(self, key: str, member: str) -> None:
        """Remove one member; an emptied set removes ``key`` itself."""

    def replace_in_set(self, key: str, old: str, new: str, ttl_seconds: int) -> bool:
        """
        Atomically swap ``old`` for ``new`` in the set at ``key``.

        :returns: ``True`` if ``old`` was a live member and has been replaced,
            ``False`` (and nothing changed) otherwise.
        """

    def cleanup_expired_tokens(self, subject_id: int | str) -> int:
        """
        Drop expired members from the subject's refresh set.

        :returns: Number of members removed.
        """

    def ping(self) -> bool:
        """Return ``True`` when the backend answers."""

    def dispose(self) -> None:
        """Release timers and connections. Safe to call more than once."""
