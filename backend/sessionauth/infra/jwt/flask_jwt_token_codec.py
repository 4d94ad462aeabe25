# sessionauth/infra/jwt/flask_jwt_token_codec.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import jwt  # PyJWT

from sessionauth.services._shared.dto import TokenKind, UserRole
from sessionauth.services._shared.errors import MalformedTokenError, TokenExpiredError
from sessionauth.services._shared.ports import TokenClaims, TokenCodec, TokenSubject


def _to_dt(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=UTC)


@dataclass(slots=True)
class FlaskJWTTokenCodec(TokenCodec):
    """
    Adapter for Flask-JWT-Extended.

    Flask-JWT-Extended sets ``sub``, ``type``, ``iat``, ``exp`` and a random
    ``jti`` on every token; ``email`` and ``role`` travel as additional claims.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def _subject_claims(self, subject: TokenSubject) -> dict[str, Any]:
        return {"email": subject.email, "role": subject.role.value}

    def create_access_token(self, subject: TokenSubject, *, expires_delta: timedelta) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=str(subject.subject_id),
                additional_claims=self._subject_claims(subject),
                expires_delta=expires_delta,
            ),
        )

    def create_refresh_token(self, subject: TokenSubject, *, expires_delta: timedelta) -> str:
        from flask_jwt_extended import create_refresh_token as _create_refresh

        return cast(
            str,
            _create_refresh(
                identity=str(subject.subject_id),
                additional_claims=self._subject_claims(subject),
                expires_delta=expires_delta,
            ),
        )

    def verify(self, token: str) -> TokenClaims:
        from flask_jwt_extended import decode_token as _decode
        from flask_jwt_extended.exceptions import JWTExtendedException

        try:
            payload = cast(dict[str, Any], _decode(token))
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except (jwt.InvalidTokenError, JWTExtendedException) as exc:
            raise MalformedTokenError("Invalid token") from exc

        try:
            return TokenClaims(
                subject_id=str(payload["sub"]),
                email=str(payload["email"]),
                role=UserRole(payload["role"]),
                kind=TokenKind(payload["type"]),
                issued_at=_to_dt(payload["iat"]),
                expires_at=_to_dt(payload["exp"]),
                jti=str(payload["jti"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedTokenError("Token claims are incomplete") from exc

    def decode_unverified(self, token: str) -> dict[str, Any] | None:
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        return payload if isinstance(payload, dict) else None
