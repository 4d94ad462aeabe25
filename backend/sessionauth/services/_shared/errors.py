"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, or SQLAlchemy directly. They serve as stable contracts between
repositories, stores, and application services.

The translation to HTTP responses (RFC 7807) is handled by
``sessionauth/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They are recoverable by the caller (4xx at the HTTP boundary).
    - The API layer translates them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """
    Raised on a failed login.

    The message is identical for "no such user" and "wrong password" so the
    caller cannot enumerate accounts.
    """

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class AlreadyExistsError(ServiceError):
    """
    Raised when a unique natural key is already taken.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param field: Name of the conflicting field (e.g., "email").
    :type field: str
    """

    entity: str
    field: str

    def __str__(self) -> str:
        return f"{self.entity} with this {self.field} already exists"


class WeakPasswordError(ServiceError):
    """
    Raised when a password fails the strength rules.

    :param errors: Every violated rule, in rule order.
    :type errors: list[str]
    """

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Password does not meet strength requirements")
        self.errors = list(errors)


class UnauthorizedError(ServiceError):
    """
    Raised when a presented token cannot be trusted.

    Callers see one uniform failure; ``reason`` keeps the internal cause
    (``expired``, ``malformed``, ``wrong_kind``, ``revoked``, ``not_in_set``)
    for logs and metrics only.
    """

    reason = "unauthorized"

    def __init__(self, message: str = "Unauthorized", *, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class TokenExpiredError(UnauthorizedError):
    """Token signature is valid but ``exp`` has passed."""

    reason = "expired"


class MalformedTokenError(UnauthorizedError):
    """Token structure, signature or claims are invalid."""

    reason = "malformed"


class WrongTokenKindError(UnauthorizedError):
    """An access token was presented where a refresh token is expected, or vice versa."""

    reason = "wrong_kind"


class RevokedTokenError(UnauthorizedError):
    """Token is on the blacklist."""

    reason = "revoked"


# --------------------------------------------------------------------------- #
# Infrastructure failures (never collapsed into UnauthorizedError)
# --------------------------------------------------------------------------- #


class TokenStoreError(Exception):
    """
    Raised when the token store cannot be reached or fails a command.

    Deliberately *not* a :class:`ServiceError`: the HTTP layer must answer
    5xx instead of telling a legitimate user their session is invalid.
    """

    pass
