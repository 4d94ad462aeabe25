"""Factory Boy definition for :class:`sessionauth.models.user.User`."""

from __future__ import annotations

import factory

from sessionauth.models.user import Role, User
from sessionauth.security.password import PasswordHasher
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"

# Cheap work factor; hashing strength is not under test here
_hasher = PasswordHasher(method="pbkdf2:sha256:1000")


class UserFactory(BaseFactory):
    """
    Build persisted :class:`User` instances.

    Pass ``password="..."`` to choose the plaintext; the stored hash is
    derived from it.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Faker("name")
    phone = None
    role = Role.USER
    is_active = True
    password_hash = factory.LazyAttribute(lambda o: _hasher.hash(o.password))
