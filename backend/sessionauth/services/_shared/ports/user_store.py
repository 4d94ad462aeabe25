from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from sessionauth.services._shared.dto import UserRole


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """
    Read-model of a user as seen by the authentication service.

    :ivar id: User id.
    :ivar email: Unique, lower-cased email.
    :ivar name: Display name.
    :ivar password_hash: One-way hash; never leaves the service layer.
    :ivar role: Domain role.
    :ivar is_active: Inactive accounts cannot log in.
    """

    id: int
    email: str
    name: str
    password_hash: str
    role: UserRole
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class CreateUserData:
    """
    Input for creating a credential record.

    :ivar email: Normalized email.
    :ivar password_hash: Already hashed password.
    :ivar name: Display name.
    :ivar phone: Optional phone number.
    :ivar role: Initial role (``user`` for self-registration).
    """

    email: str
    password_hash: str
    name: str
    phone: str | None = None
    role: UserRole = UserRole.USER


class UserStore(Protocol):
    """
    Source of truth for credentials and roles.

    The authentication service never caches what this returns.
    """

    def find_by_email(self, email: str) -> CredentialRecord | None: ...

    def find_by_id(self, user_id: int | str) -> CredentialRecord | None: ...

    def create(self, data: CreateUserData) -> CredentialRecord: ...
