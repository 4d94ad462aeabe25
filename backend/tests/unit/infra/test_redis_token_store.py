# tests/unit/infra/test_redis_token_store.py
"""
Unit tests for RedisTokenStore using fakeredis.

These tests exercise the main flows:
- scalar set/get/delete
- refresh sets with per-member expiry
- atomic replace_in_set (rotation)
- cleanup of expired members
- connectivity failures surfacing as TokenStoreError

They use fakeredis.FakeRedis so they run entirely in-memory.
"""

from __future__ import annotations

import logging
import time

import fakeredis
import pytest

from sessionauth.infra.redis.redis_token_store import RedisTokenStore
from sessionauth.services._shared.errors import TokenStoreError
from sessionauth.services._shared.ports import blacklist_key, refresh_set_key


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis(decode_responses=True)
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis):
    """Provide a RedisTokenStore backed by FakeRedis."""
    return RedisTokenStore(r=fake_redis)


@pytest.fixture
def down_store():
    """A store whose server refuses every command."""
    server = fakeredis.FakeServer()
    server.connected = False
    return RedisTokenStore(r=fakeredis.FakeRedis(server=server))


# ------------------------------- Scalars ----------------------------------- #


def test_set_get_and_delete_scalar(store, fake_redis):
    """A scalar is readable until deleted and carries the requested TTL."""
    key = blacklist_key("tok")
    store.set(key, "1", 120)

    assert store.get(key) == "1"
    assert 0 < fake_redis.ttl(key) <= 120

    store.delete(key)
    assert store.get(key) is None
    # deleting again is a no-op
    store.delete(key)


def test_get_missing_key_returns_none(store):
    assert store.get("blacklist:missing") is None


def test_get_on_set_key_returns_none(store):
    """Reading a set key as a scalar yields None instead of a type error."""
    store.add_to_set("refresh:1", "rt-1", 60)
    assert store.get("refresh:1") is None


def test_bytes_replies_are_decoded():
    """The store works with clients that do not decode responses."""
    store = RedisTokenStore(r=fakeredis.FakeRedis())
    store.set("blacklist:x", "1", 60)
    store.add_to_set("refresh:9", "rt-a", 60)

    assert store.get("blacklist:x") == "1"
    assert store.get_set("refresh:9") == ["rt-a"]


# -------------------------------- Sets ------------------------------------- #


def test_add_to_set_and_get_set(store, fake_redis):
    """Members are listed and the key expires with its latest member."""
    key = refresh_set_key(1)
    store.add_to_set(key, "rt-1", 60)
    store.add_to_set(key, "rt-2", 600)

    assert sorted(store.get_set(key)) == ["rt-1", "rt-2"]
    assert 60 < fake_redis.ttl(key) <= 601


def test_get_set_ignores_expired_members(store, fake_redis):
    """A member whose own expiry passed is invisible even if the key lives on."""
    key = refresh_set_key(2)
    store.add_to_set(key, "live", 300)
    fake_redis.zadd(key, {"stale": time.time() - 5})

    assert store.get_set(key) == ["live"]


def test_get_set_missing_or_scalar_is_empty(store):
    store.set("refresh:3", "oops", 60)
    assert store.get_set("refresh:3") == []
    assert store.get_set("refresh:404") == []


def test_add_to_set_resets_scalar_with_warning(store, caplog):
    """A scalar at a set key is replaced by a fresh set holding only the member."""
    key = refresh_set_key(4)
    store.set(key, "scalar", 60)

    with caplog.at_level(logging.WARNING):
        store.add_to_set(key, "rt-1", 60)

    assert store.get_set(key) == ["rt-1"]
    assert any("fresh set" in rec.getMessage() for rec in caplog.records)


def test_remove_last_member_removes_key(store, fake_redis):
    key = refresh_set_key(5)
    store.add_to_set(key, "rt-1", 60)

    store.remove_from_set(key, "rt-1")

    assert store.get_set(key) == []
    assert fake_redis.exists(key) == 0
    # idempotent
    store.remove_from_set(key, "rt-1")


def test_remove_member_keeps_others(store):
    key = refresh_set_key(6)
    store.add_to_set(key, "rt-1", 60)
    store.add_to_set(key, "rt-2", 60)

    store.remove_from_set(key, "rt-1")

    assert store.get_set(key) == ["rt-2"]


# ------------------------------- Rotation ---------------------------------- #


def test_replace_in_set_swaps_member(store):
    key = refresh_set_key(7)
    store.add_to_set(key, "old", 60)

    assert store.replace_in_set(key, "old", "new", 60) is True
    assert store.get_set(key) == ["new"]


def test_replace_in_set_consumes_old_exactly_once(store):
    """A second rotation of the same member fails and changes nothing."""
    key = refresh_set_key(8)
    store.add_to_set(key, "old", 60)

    assert store.replace_in_set(key, "old", "new-1", 60) is True
    assert store.replace_in_set(key, "old", "new-2", 60) is False
    assert store.get_set(key) == ["new-1"]


def test_replace_in_set_rejects_expired_member(store, fake_redis):
    key = refresh_set_key(9)
    fake_redis.zadd(key, {"old": time.time() - 1})

    assert store.replace_in_set(key, "old", "new", 60) is False
    assert store.get_set(key) == []


def test_replace_in_set_on_missing_or_scalar_key(store):
    assert store.replace_in_set("refresh:missing", "a", "b", 60) is False
    store.set("refresh:10", "scalar", 60)
    assert store.replace_in_set("refresh:10", "a", "b", 60) is False
    assert store.get("refresh:10") == "scalar"


# ------------------------------- Cleanup ----------------------------------- #


def test_cleanup_expired_tokens_counts_removed(store, fake_redis):
    key = refresh_set_key(11)
    store.add_to_set(key, "live", 300)
    fake_redis.zadd(key, {"stale-1": time.time() - 10, "stale-2": time.time() - 1})

    assert store.cleanup_expired_tokens(11) == 2
    assert fake_redis.zcard(key) == 1
    assert store.cleanup_expired_tokens(11) == 0


def test_cleanup_on_absent_subject_is_zero(store):
    assert store.cleanup_expired_tokens("nobody") == 0


# ---------------------------- Connectivity --------------------------------- #


def test_ping(store, down_store):
    assert store.ping() is True
    assert down_store.ping() is False


@pytest.mark.parametrize(
    "call",
    [
        lambda s: s.set("blacklist:t", "1", 60),
        lambda s: s.get("blacklist:t"),
        lambda s: s.add_to_set("refresh:1", "rt", 60),
        lambda s: s.get_set("refresh:1"),
        lambda s: s.replace_in_set("refresh:1", "a", "b", 60),
    ],
)
def test_unreachable_backend_raises_token_store_error(down_store, call):
    """Connectivity failures are never reported as 'missing' or 'not a member'."""
    with pytest.raises(TokenStoreError):
        call(down_store)
