# tests/unit/repositories/test_user_repository.py
from __future__ import annotations

import pytest

from sessionauth.models.user import Role, User
from sessionauth.repositories.user import UserRepository, to_domain_role
from sessionauth.services._shared.dto import UserRole
from sessionauth.services._shared.errors import AlreadyExistsError
from sessionauth.services._shared.ports import CreateUserData
from tests.factories.user import UserFactory


@pytest.fixture()
def repo(session) -> UserRepository:
    return UserRepository(session)


@pytest.mark.parametrize(
    ("stored", "domain"),
    [
        (Role.ADMIN, UserRole.ADMIN),
        (Role.MODERATOR, UserRole.MODERATOR),
        (Role.USER, UserRole.USER),
        ("MODERATOR", UserRole.MODERATOR),
    ],
)
def test_role_conversion(stored, domain):
    assert to_domain_role(stored) is domain


def test_role_conversion_rejects_unknown():
    with pytest.raises(ValueError):
        to_domain_role("SUPERUSER")


def test_find_by_email_is_case_insensitive(repo):
    user = UserFactory(email="MiXed@Example.com", role=Role.MODERATOR)

    record = repo.find_by_email("  mixed@EXAMPLE.com")

    assert record is not None
    assert record.id == user.id
    assert record.email == "mixed@example.com"
    assert record.role is UserRole.MODERATOR
    assert record.is_active is True


def test_find_by_email_missing(repo):
    assert repo.find_by_email("ghost@example.com") is None


def test_find_by_id_accepts_string_ids(repo):
    user = UserFactory()
    assert repo.find_by_id(str(user.id)).id == user.id
    assert repo.find_by_id(user.id).email == user.email


@pytest.mark.parametrize("bad_id", ["abc", None, "999999"])
def test_find_by_id_missing_or_invalid(repo, bad_id):
    assert repo.find_by_id(bad_id) is None


def test_create_persists_domain_role(repo, session):
    record = repo.create(
        CreateUserData(
            email="mod@example.com",
            password_hash="pbkdf2:sha256:1000$salt$hash",
            name="Mod",
            phone="+34600111222",
            role=UserRole.MODERATOR,
        )
    )

    row = session.get(User, record.id)
    assert row.role is Role.MODERATOR
    assert row.phone == "+34600111222"
    assert record.role is UserRole.MODERATOR


def test_create_duplicate_email_raises(repo):
    UserFactory(email="taken@example.com")

    with pytest.raises(AlreadyExistsError):
        repo.create(
            CreateUserData(email="taken@example.com", password_hash="x$y$z", name="Again")
        )
    # session is usable after the rollback
    assert repo.find_by_email("taken@example.com") is not None
