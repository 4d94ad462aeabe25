# sessionauth/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sessionauth.core.config import parse_duration
from sessionauth.services._shared.dto import UserRole

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized by the service).
    :param password: Raw password (to be verified).
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for self-registration.

    :param email: User email (normalized by the service).
    :param password: Raw password, checked against the strength rules.
    :param name: Display name.
    :param phone: Optional phone number.
    """

    email: str
    password: str
    name: str
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for single-device logout.

    :param subject_id: Id of the authenticated subject.
    :param access_token: Access JWT to revoke, if any.
    :param refresh_token: Refresh JWT to drop and revoke, if any.
    """

    subject_id: str
    access_token: str | None = None
    refresh_token: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """Public view of a user. Never carries the password hash."""

    id: str
    email: str
    name: str
    role: UserRole


@dataclass(frozen=True, slots=True)
class AuthResultOut:
    """Tokens plus the public user view returned by login and register."""

    access_token: str
    refresh_token: str
    user: UserPublicOut


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    """

    access_expires: timedelta
    refresh_expires: timedelta

    @property
    def refresh_ttl_seconds(self) -> int:
        return int(self.refresh_expires.total_seconds())

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """Build from ``JWT_ACCESS_EXPIRES_IN`` / ``JWT_REFRESH_EXPIRES_IN`` duration strings."""
        return cls(
            access_expires=timedelta(seconds=parse_duration(config.get("JWT_ACCESS_EXPIRES_IN", "15m"))),
            refresh_expires=timedelta(seconds=parse_duration(config.get("JWT_REFRESH_EXPIRES_IN", "7d"))),
        )
