"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import atexit
import logging
from collections.abc import Mapping
from typing import Any

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from sessionauth.services._shared.ports import TokenStore

log = logging.getLogger(__name__)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
jwt = JWTManager()

TOKEN_STORE_MODES = ("redis", "memory", "auto")
TOKEN_STORE_EXTENSION = "token_store"


def build_token_store(config: Mapping[str, Any]) -> TokenStore:
    """Select and construct the token store described by ``config``.

    Parameters
    ----------
    config: Mapping[str, Any]
        Application configuration. ``TOKEN_STORE`` picks the backend:

        - ``redis``: require a reachable ``REDIS_URL``.
        - ``memory``: process-local fallback.
        - ``auto``: Redis when ``REDIS_URL`` is set and answers, else memory.

    Raises
    ------
    RuntimeError
        When Redis is required but unavailable, the mode is unknown, or the
        in-memory store is selected while ``APP_INSTANCES`` is above one.
    """
    from sessionauth.infra.memory import InMemoryTokenStore
    from sessionauth.infra.redis import RedisTokenStore

    mode = str(config.get("TOKEN_STORE") or "auto").strip().lower()
    if mode not in TOKEN_STORE_MODES:
        raise RuntimeError(f"Unknown TOKEN_STORE {mode!r}; expected one of {TOKEN_STORE_MODES}.")

    redis_url = config.get("REDIS_URL")
    if mode == "redis" and not redis_url:
        raise RuntimeError("TOKEN_STORE=redis requires REDIS_URL.")

    if mode in ("redis", "auto") and redis_url:
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        try:
            client.ping()
        except RedisError as exc:
            if mode == "redis":
                raise RuntimeError("Failed to connect to the Redis token store.") from exc
            log.warning(
                "Redis token store unreachable; falling back to in-memory store",
                extra={"store": "redis", "reason": type(exc).__name__},
            )
        else:
            log.info("token store selected", extra={"store": "redis"})
            return RedisTokenStore(client)

    instances = int(config.get("APP_INSTANCES") or 1)
    if instances > 1:
        raise RuntimeError(
            f"In-memory token store cannot serve APP_INSTANCES={instances}; configure REDIS_URL."
        )
    return InMemoryTokenStore(sweep_interval=float(config.get("TOKEN_STORE_SWEEP_SECONDS", 60)))


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, JWT and the token store.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`sessionauth.models` package so SQLAlchemy metadata is complete
        before ``create_all`` runs.
    """
    db.init_app(app)

    # Ensure models are imported so metadata is populated
    from sessionauth import models as _models  # noqa: F401

    jwt.init_app(app)

    store = build_token_store(app.config)
    app.extensions[TOKEN_STORE_EXTENSION] = store
    atexit.register(store.dispose)


def get_token_store() -> TokenStore:
    """Return the token store bound to the current application."""
    store = current_app.extensions.get(TOKEN_STORE_EXTENSION)
    if store is None:
        raise RuntimeError("Token store is not initialized. Call init_app() first.")
    return store
