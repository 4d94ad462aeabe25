"""User repository backing the credential lookups of the auth service."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sessionauth.models.user import Role, User
from sessionauth.services._shared.dto import UserRole
from sessionauth.services._shared.errors import AlreadyExistsError
from sessionauth.services._shared.ports import CreateUserData, CredentialRecord, UserStore

# Persisted role -> domain role. Total over ``Role``.
_ROLE_TO_DOMAIN: dict[Role, UserRole] = {
    Role.ADMIN: UserRole.ADMIN,
    Role.MODERATOR: UserRole.MODERATOR,
    Role.USER: UserRole.USER,
}
_ROLE_FROM_DOMAIN: dict[UserRole, Role] = {v: k for k, v in _ROLE_TO_DOMAIN.items()}


def to_domain_role(role: Role | str) -> UserRole:
    """Convert a persisted role to :class:`UserRole`.

    :param role: ``Role`` member or its stored name.
    :raises ValueError: For values outside the closed role set.
    """
    return _ROLE_TO_DOMAIN[Role(role)]


def to_record(user: User) -> CredentialRecord:
    """Project a :class:`User` row onto the service read-model."""
    return CredentialRecord(
        id=user.id,
        email=user.email,
        name=user.name,
        password_hash=user.password_hash,
        role=to_domain_role(user.role),
        is_active=bool(user.is_active),
    )


class UserRepository(UserStore):
    """Persistence-only repository for :class:`User`.

    This repository NEVER handles tokens or sessions; it only reads and
    creates credential records.

    :param session: SQLAlchemy session (``db.session`` in the app).
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def find_by_email(self, email: str) -> CredentialRecord | None:
        user = self.get_by_email(email)
        return to_record(user) if user else None

    def find_by_id(self, user_id: int | str) -> CredentialRecord | None:
        try:
            pk = int(user_id)
        except (TypeError, ValueError):
            return None
        user = self.session.get(User, pk)
        return to_record(user) if user else None

    # ---------------------------- Writes ----------------------------

    def create(self, data: CreateUserData) -> CredentialRecord:
        """Insert a new user and commit.

        :raises AlreadyExistsError: When the email is already taken (race
            with a concurrent registration).
        """
        user = User(
            email=data.email,
            password_hash=data.password_hash,
            name=data.name,
            phone=data.phone,
            role=_ROLE_FROM_DOMAIN[data.role],
            is_active=True,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise AlreadyExistsError("User", "email") from exc
        return to_record(user)
