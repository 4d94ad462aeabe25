"""Value types shared by ports and services."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """
    Closed set of roles a subject can hold.

    The persisted representation (``ADMIN``/``MODERATOR``/``USER``) is
    converted exclusively at the repository boundary.
    """

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class TokenKind(str, Enum):
    """Discriminator carried in the ``type`` claim of every session token."""

    ACCESS = "access"
    REFRESH = "refresh"
