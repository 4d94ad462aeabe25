"""Shared fixtures: one app per run, one app context and one rolled-back transaction per test.

Tests run against in-memory SQLite. Each test works inside an outer
transaction on a dedicated connection; application commits only release
SAVEPOINTs, and the outer rollback discards everything. Every test also gets
a fresh in-memory token store with the sweeper thread disabled.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from sessionauth.core.config import TestingConfig
from sessionauth.core.extensions import TOKEN_STORE_EXTENSION
from sessionauth.core.extensions import db as _db
from sessionauth.factory import create_app
from sessionauth.infra.memory import InMemoryTokenStore
from tests.factories import bind_session


@pytest.fixture(scope="session")
def app():
    """Flask app built from :class:`TestingConfig`."""
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
    yield app
    app.extensions[TOKEN_STORE_EXTENSION].dispose()


@pytest.fixture(scope="session")
def db(app):
    """Create the schema once per run."""
    with app.app_context():
        _db.create_all()
    yield _db
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Fresh app context per test, so ``flask.g`` never carries over."""
    with app.app_context() as ctx:
        yield ctx


@pytest.fixture(scope="session")
def connection(app, db):
    """Single connection shared by every test session."""
    with app.app_context():
        engine = db.engine
    with engine.connect() as conn:
        if conn.dialect.name == "sqlite":
            # pysqlite: hand BEGIN to SQLAlchemy so SAVEPOINTs nest under it
            conn.connection.driver_connection.isolation_level = None
            event.listen(conn, "begin", lambda c: c.exec_driver_sql("BEGIN"))
        yield conn


@pytest.fixture()
def session(db, connection, app_context):
    """
    Scoped session joined to an outer transaction.

    ``join_transaction_mode="create_savepoint"`` turns ``session.commit()``
    and ``session.rollback()`` into SAVEPOINT release/rollback, so code under
    test can commit freely. ``db.session`` is swapped for this session while
    the test runs.
    """
    outer = connection.begin()
    scoped = scoped_session(
        sessionmaker(
            bind=connection,
            autoflush=False,
            join_transaction_mode="create_savepoint",
        )
    )

    app_session = db.session
    app_session.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = app_session
        outer.rollback()


@pytest.fixture(autouse=True)
def token_store(app):
    """Fresh :class:`InMemoryTokenStore` installed on the app for one test."""
    previous = app.extensions[TOKEN_STORE_EXTENSION]
    store = InMemoryTokenStore(sweep_interval=0)
    app.extensions[TOKEN_STORE_EXTENSION] = store
    yield store
    app.extensions[TOKEN_STORE_EXTENSION] = previous
    store.dispose()


@pytest.fixture(autouse=True)
def _bind_factories(session):
    bind_session(session)


@pytest.fixture()
def client(app, session):
    return app.test_client()


@pytest.fixture()
def freeze_time():
    """:func:`freezegun.freeze_time`, usable as ``with freeze_time(...) as frozen``."""
    from freezegun import freeze_time as _freeze_time

    return _freeze_time
