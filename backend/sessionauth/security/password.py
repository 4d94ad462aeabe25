"""
Password hashing and strength policy.

Hashing is delegated to :mod:`werkzeug.security`, which salts every hash and
applies the work factor encoded in the method string (``scrypt`` by default).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from werkzeug.security import check_password_hash, generate_password_hash

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72

# (pattern, message) in reporting order
_CHARACTER_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^a-zA-Z0-9]"), "Password must contain at least one special character"),
)


class PasswordTooLongError(ValueError):
    """Raised when a plaintext exceeds the hashing input limit."""

    def __init__(self) -> None:
        super().__init__(f"Password too long (max {MAX_PASSWORD_BYTES} bytes)")


def _too_long(plaintext: str) -> bool:
    return len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES


@dataclass(frozen=True, slots=True)
class PasswordStrength:
    """
    Result of :func:`validate_strength`.

    :ivar valid: ``True`` when no rule is violated.
    :ivar errors: Human-readable violations, in rule order.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)


def validate_strength(plaintext: str) -> PasswordStrength:
    """
    Check ``plaintext`` against every password rule.

    All violated rules are reported, not only the first one.
    """
    errors: list[str] = []
    if len(plaintext) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if _too_long(plaintext):
        errors.append(f"Password too long (max {MAX_PASSWORD_BYTES} bytes)")
    for pattern, message in _CHARACTER_RULES:
        if not pattern.search(plaintext):
            errors.append(message)
    return PasswordStrength(valid=not errors, errors=errors)


@dataclass(frozen=True, slots=True)
class PasswordHasher:
    """
    One-way password hashing.

    :param method: Werkzeug method string, e.g. ``scrypt`` or
        ``pbkdf2:sha256:600000``.
    """

    method: str = "scrypt"

    def hash(self, plaintext: str) -> str:
        """
        Return a salted hash of ``plaintext``.

        :raises PasswordTooLongError: When the UTF-8 encoding exceeds 72 bytes.
        """
        if _too_long(plaintext):
            raise PasswordTooLongError()
        return generate_password_hash(plaintext, method=self.method)

    def compare(self, plaintext: str, hashed: str) -> bool:
        """Constant-time check of ``plaintext`` against ``hashed``."""
        if not hashed or _too_long(plaintext):
            return False
        try:
            return check_password_hash(hashed, plaintext)
        except ValueError:
            # unknown or malformed method prefix
            return False
