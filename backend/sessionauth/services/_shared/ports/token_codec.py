from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

from sessionauth.services._shared.dto import TokenKind, UserRole


@dataclass(frozen=True, slots=True)
class TokenSubject:
    """
    Identity embedded into a freshly minted token.

    :ivar subject_id: User id (always carried as a string ``sub`` claim).
    :ivar email: Normalized email.
    :ivar role: Role at issuance time.
    """

    subject_id: str
    email: str
    role: UserRole


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified claims of a session token.

    :ivar subject_id: ``sub`` claim.
    :ivar email: ``email`` claim.
    :ivar role: ``role`` claim.
    :ivar kind: ``type`` claim (access or refresh).
    :ivar issued_at: ``iat`` claim (UTC).
    :ivar expires_at: ``exp`` claim (UTC).
    :ivar jti: Unique token id.
    """

    subject_id: str
    email: str
    role: UserRole
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    jti: str


class TokenCodec(Protocol):
    """Port for signing, verifying and inspecting session tokens."""

    def create_access_token(self, subject: TokenSubject, *, expires_delta: timedelta) -> str:
        """Sign a short-lived access token for ``subject``."""

    def create_refresh_token(self, subject: TokenSubject, *, expires_delta: timedelta) -> str:
        """Sign a long-lived refresh token for ``subject``."""

    def verify(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.

        :raises TokenExpiredError: When ``exp`` has passed.
        :raises MalformedTokenError: On bad signature, structure or claims.
        """

    def decode_unverified(self, token: str) -> dict[str, Any] | None:
        """
        Parse the payload **without** verifying it.

        Only for reading ``exp`` when computing a blacklist TTL; never use the
        result for trust decisions. Returns ``None`` when unparsable.
        """
