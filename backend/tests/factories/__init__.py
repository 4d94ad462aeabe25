"""Factory Boy base bound to the per-test SQLAlchemy session."""

from __future__ import annotations

import factory
from sqlalchemy.orm import scoped_session

_session: scoped_session | None = None


def bind_session(session: scoped_session) -> None:
    """Point every factory at ``session`` (called by the autouse fixture)."""
    global _session
    _session = session


def current_session() -> scoped_session:
    if _session is None:
        raise RuntimeError("No session bound; request the 'session' fixture first.")
    return _session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Persist with ``commit`` so rows survive request-scoped session resets."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "commit"
