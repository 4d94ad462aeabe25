"""Credential hashing and password policy."""

from __future__ import annotations

from .password import PasswordHasher, PasswordStrength, PasswordTooLongError, validate_strength

__all__ = ["PasswordHasher", "PasswordStrength", "PasswordTooLongError", "validate_strength"]
