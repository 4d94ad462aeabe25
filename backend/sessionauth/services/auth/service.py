# sessionauth/services/auth/service.py
from __future__ import annotations

import logging
import math
from datetime import UTC, datetime

from sessionauth.core.audit import AuditLogger
from sessionauth.core.logger import token_prefix
from sessionauth.security.password import PasswordHasher, validate_strength
from sessionauth.services._shared.base import BaseService, ServiceContext
from sessionauth.services._shared.dto import TokenKind, UserRole
from sessionauth.services._shared.errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    NotFoundError,
    RevokedTokenError,
    UnauthorizedError,
    WeakPasswordError,
    WrongTokenKindError,
)
from sessionauth.services._shared.ports import (
    CreateUserData,
    CredentialRecord,
    TokenClaims,
    TokenCodec,
    TokenStore,
    TokenSubject,
    UserStore,
    blacklist_key,
    refresh_set_key,
)
from sessionauth.services.auth.dto import (
    AuthResultOut,
    AuthTokenConfig,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
    UserPublicOut,
)

log = logging.getLogger(__name__)

BLACKLIST_MARKER = "1"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    State is split between self-describing JWTs and the token store, which
    holds two things per subject:

    - ``refresh:<id>``: set of refresh tokens that may still be exchanged.
    - ``blacklist:<token>``: revocation marker living as long as the token.

    All collaborators are injected; the service never reaches for
    module-level singletons.
    """

    def __init__(
        self,
        *,
        user_store: UserStore,
        token_store: TokenStore,
        token_codec: TokenCodec,
        password_hasher: PasswordHasher,
        token_cfg: AuthTokenConfig | None = None,
        audit: AuditLogger | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param user_store: Source of truth for credentials and roles.
        :param token_store: Refresh-set and blacklist storage.
        :param token_codec: Signs and verifies JWTs.
        :param password_hasher: One-way password hashing.
        :param token_cfg: Access/Refresh expiry configuration.
        :param audit: Security audit trail.
        :param ctx: Request-scoped context (client address for audit).
        """
        super().__init__(ctx=ctx)
        self.users = user_store
        self.store = token_store
        self.tokens = token_codec
        self.hasher = password_hasher
        self.cfg = token_cfg or AuthTokenConfig.from_config({})
        self.audit = audit or AuditLogger()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    @staticmethod
    def _public(record: CredentialRecord) -> UserPublicOut:
        return UserPublicOut(
            id=str(record.id), email=record.email, name=record.name, role=record.role
        )

    def _audit(self, action: str, success: bool, **fields: object) -> None:
        self.audit.log_auth(
            action=action,
            success=success,
            ip=self.ctx.ip,
            user_agent=self.ctx.user_agent,
            **fields,  # type: ignore[arg-type]
        )

    def _issue_pair(self, subject: TokenSubject) -> TokenPairOut:
        access = self.tokens.create_access_token(subject, expires_delta=self.cfg.access_expires)
        refresh = self.tokens.create_refresh_token(subject, expires_delta=self.cfg.refresh_expires)
        return TokenPairOut(access_token=access, refresh_token=refresh)

    def _start_session(self, record: CredentialRecord) -> AuthResultOut:
        """Mint a pair for ``record`` and register its refresh token."""
        subject = TokenSubject(subject_id=str(record.id), email=record.email, role=record.role)
        pair = self._issue_pair(subject)
        self.store.add_to_set(
            refresh_set_key(record.id), pair.refresh_token, self.cfg.refresh_ttl_seconds
        )
        self.store.cleanup_expired_tokens(record.id)
        return AuthResultOut(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            user=self._public(record),
        )

    def _remaining_ttl(self, token: str) -> int:
        """Seconds until ``exp`` of ``token`` (``0`` when elapsed or unreadable)."""
        payload = self.tokens.decode_unverified(token)
        exp = payload.get("exp") if payload else None
        if not isinstance(exp, int | float):
            return 0
        # round up: a token with a fraction of a second left is still live
        return math.ceil(exp - self.now_utc().timestamp())

    def _blacklist(self, token: str) -> bool:
        """Revoke ``token`` for the rest of its lifetime. Returns ``False`` when skipped."""
        ttl = self._remaining_ttl(token)
        if ttl <= 0:
            return False
        self.store.set(blacklist_key(token), BLACKLIST_MARKER, ttl)
        return True

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResultOut:
        """
        Create an account and open its first session.

        :raises WeakPasswordError: If the password breaks any strength rule.
        :raises AlreadyExistsError: If the normalized email is taken.
        """
        email = normalize_email(dto.email)

        strength = validate_strength(dto.password)
        if not strength.valid:
            raise WeakPasswordError(strength.errors)

        if self.users.find_by_email(email) is not None:
            self._audit("register", False, email=email, reason="email_taken")
            raise AlreadyExistsError("User", "email")

        record = self.users.create(
            CreateUserData(
                email=email,
                password_hash=self.hasher.hash(dto.password),
                name=dto.name.strip(),
                phone=dto.phone,
                role=UserRole.USER,
            )
        )
        result = self._start_session(record)

        self._audit("register", True, user_id=record.id, email=email)
        log.info("auth.registered", extra={"subject_id": str(record.id)})
        return result

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AuthResultOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email, wrong password and inactive account all raise the same
        :class:`InvalidCredentialsError`; only the log line tells them apart.
        """
        email = normalize_email(dto.email)
        record = self.users.find_by_email(email)

        reason: str | None = None
        if record is None:
            reason = "unknown_email"
        elif not self.hasher.compare(dto.password, record.password_hash):
            reason = "bad_password"
        elif not record.is_active:
            reason = "inactive"

        if record is None or reason is not None:
            self._audit(
                "login",
                False,
                email=email,
                user_id=record.id if record else None,
                reason=reason,
            )
            raise InvalidCredentialsError()

        result = self._start_session(record)
        self._audit("login", True, user_id=record.id, email=email)
        return result

    # ------------------------------------------------------------------ #
    # Verify
    # ------------------------------------------------------------------ #

    def verify_token(
        self, token: str, expected_kind: TokenKind | str = TokenKind.ACCESS
    ) -> TokenClaims:
        """
        Single choke point for trusting a presented token.

        :raises TokenExpiredError: Past ``exp``.
        :raises MalformedTokenError: Bad signature, structure or claims.
        :raises WrongTokenKindError: ``type`` claim differs from ``expected_kind``,
            or ``expected_kind`` is not a known kind.
        :raises RevokedTokenError: A blacklist entry exists for this exact token.
        """
        try:
            kind = TokenKind(expected_kind)
        except ValueError as exc:
            raise WrongTokenKindError(f"Unknown token type: {expected_kind!r}") from exc
        claims = self.tokens.verify(token)
        if claims.kind != kind:
            raise WrongTokenKindError("Invalid token type")
        if self.store.get(blacklist_key(token)) is not None:
            raise RevokedTokenError("Token has been revoked")
        return claims

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh_token(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - Requires a valid, non-revoked refresh token.
        - The token must still be in the subject's refresh set; the swap for
          the new one is a single conditional store operation, so a token can
          be exchanged at most once even under concurrent calls.
        """
        claims = self.verify_token(dto.refresh_token, TokenKind.REFRESH)
        subject = TokenSubject(subject_id=claims.subject_id, email=claims.email, role=claims.role)
        pair = self._issue_pair(subject)

        rotated = self.store.replace_in_set(
            refresh_set_key(claims.subject_id),
            dto.refresh_token,
            pair.refresh_token,
            self.cfg.refresh_ttl_seconds,
        )
        if not rotated:
            log.warning(
                "auth.refresh_rejected",
                extra={
                    "subject_id": claims.subject_id,
                    "token_prefix": token_prefix(dto.refresh_token),
                    "reason": "not_in_set",
                },
            )
            raise UnauthorizedError("Invalid refresh token", reason="not_in_set")

        self.store.cleanup_expired_tokens(claims.subject_id)
        log.info("auth.refreshed", extra={"subject_id": claims.subject_id})
        return pair

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Single-device logout.

        Drops the refresh token from the subject's set and blacklists every
        given token for its remaining lifetime.
        """
        if dto.refresh_token:
            self.store.remove_from_set(refresh_set_key(dto.subject_id), dto.refresh_token)

        for token in (dto.access_token, dto.refresh_token):
            if token and not self._blacklist(token):
                log.debug(
                    "auth.blacklist_skipped",
                    extra={"subject_id": dto.subject_id, "token_prefix": token_prefix(token)},
                )

        self._audit("logout", True, user_id=dto.subject_id)

    def logout_all_devices(self, subject_id: int | str) -> int:
        """
        Revoke every refresh token of ``subject_id`` and clear its set.

        :returns: Number of refresh tokens that were live.
        """
        key = refresh_set_key(subject_id)
        members = self.store.get_set(key)
        for token in members:
            self._blacklist(token)
        self.store.delete(key)

        self._audit("logout_all", True, user_id=subject_id)
        log.info(
            "auth.logout_all revoked=%s",
            len(members),
            extra={"subject_id": str(subject_id)},
        )
        return len(members)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def get_user(self, subject_id: int | str) -> UserPublicOut:
        """
        Public view of a subject.

        :raises NotFoundError: If no record exists for ``subject_id``.
        """
        record = self.users.find_by_id(subject_id)
        if record is None:
            raise NotFoundError("User", subject_id)
        return self._public(record)
