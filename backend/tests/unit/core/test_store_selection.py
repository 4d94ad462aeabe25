# tests/unit/core/test_store_selection.py
from __future__ import annotations

import logging

import fakeredis
import pytest

from sessionauth.core import extensions
from sessionauth.core.extensions import build_token_store, get_token_store
from sessionauth.infra.memory import InMemoryTokenStore
from sessionauth.infra.redis import RedisTokenStore

REDIS_URL = "redis://cache:6379/0"


@pytest.fixture()
def fake_redis(monkeypatch):
    """Route ``Redis.from_url`` to an in-process fake server."""
    server = fakeredis.FakeServer()
    monkeypatch.setattr(
        extensions.redis.Redis,
        "from_url",
        lambda url, **kw: fakeredis.FakeRedis(server=server, **kw),
    )
    return server


@pytest.fixture()
def built():
    stores = []

    def _build(config):
        store = build_token_store(config)
        stores.append(store)
        return store

    yield _build
    for store in stores:
        store.dispose()


def test_memory_mode(built, caplog):
    with caplog.at_level(logging.WARNING):
        store = built({"TOKEN_STORE": "memory", "TOKEN_STORE_SWEEP_SECONDS": 0})
    assert isinstance(store, InMemoryTokenStore)
    assert "degraded" in caplog.text


def test_redis_mode(built, fake_redis):
    store = built({"TOKEN_STORE": "redis", "REDIS_URL": REDIS_URL})
    assert isinstance(store, RedisTokenStore)
    assert store.ping() is True


def test_redis_mode_requires_url(built):
    with pytest.raises(RuntimeError, match="REDIS_URL"):
        built({"TOKEN_STORE": "redis"})


def test_redis_mode_fails_when_unreachable(built, fake_redis):
    fake_redis.connected = False
    with pytest.raises(RuntimeError, match="Failed to connect"):
        built({"TOKEN_STORE": "redis", "REDIS_URL": REDIS_URL})


def test_auto_prefers_redis(built, fake_redis):
    store = built({"TOKEN_STORE": "auto", "REDIS_URL": REDIS_URL})
    assert isinstance(store, RedisTokenStore)


def test_auto_falls_back_to_memory(built, fake_redis, caplog):
    fake_redis.connected = False
    with caplog.at_level(logging.WARNING):
        store = built(
            {"TOKEN_STORE": "auto", "REDIS_URL": REDIS_URL, "TOKEN_STORE_SWEEP_SECONDS": 0}
        )
    assert isinstance(store, InMemoryTokenStore)
    assert "falling back" in caplog.text


def test_auto_without_url_uses_memory(built):
    store = built({"TOKEN_STORE": "auto", "TOKEN_STORE_SWEEP_SECONDS": 0})
    assert isinstance(store, InMemoryTokenStore)


def test_memory_refused_for_multiple_instances(built):
    with pytest.raises(RuntimeError, match="APP_INSTANCES=3"):
        built({"TOKEN_STORE": "memory", "APP_INSTANCES": 3})


def test_unknown_mode(built):
    with pytest.raises(RuntimeError, match="Unknown TOKEN_STORE"):
        built({"TOKEN_STORE": "memcached"})


def test_get_token_store_returns_app_store(app, token_store):
    assert get_token_store() is token_store
