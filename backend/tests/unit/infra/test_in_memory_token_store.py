"""Unit tests for the process-local InMemoryTokenStore."""

from __future__ import annotations

import logging
import threading

import pytest

from sessionauth.infra.memory import InMemoryTokenStore
from sessionauth.services._shared.ports import refresh_set_key


@pytest.fixture
def store():
    """Store without background sweeper; disposed after the test."""
    s = InMemoryTokenStore(sweep_interval=0)
    yield s
    s.dispose()


def test_construction_warns_about_degraded_mode(caplog):
    with caplog.at_level(logging.WARNING):
        s = InMemoryTokenStore(sweep_interval=0)
    s.dispose()
    assert any("degraded" in rec.getMessage() for rec in caplog.records)


def test_scalar_expires(store, freeze_time):
    with freeze_time("2025-01-01 00:00:00") as frozen:
        store.set("blacklist:t", "1", 30)
        assert store.get("blacklist:t") == "1"

        frozen.tick(31)
        assert store.get("blacklist:t") is None


def test_set_members_expire_individually(store, freeze_time):
    key = refresh_set_key(1)
    with freeze_time("2025-01-01 00:00:00") as frozen:
        store.add_to_set(key, "short", 10)
        store.add_to_set(key, "long", 100)

        frozen.tick(11)
        assert store.get_set(key) == ["long"]

        frozen.tick(100)
        assert store.get_set(key) == []


def test_get_distinguishes_scalars_and_sets(store):
    store.add_to_set("refresh:2", "rt", 60)
    store.set("blacklist:x", "1", 60)

    assert store.get("refresh:2") is None
    assert store.get_set("blacklist:x") == []


def test_add_to_set_replaces_scalar(store, caplog):
    store.set("refresh:3", "scalar", 60)
    with caplog.at_level(logging.WARNING):
        store.add_to_set("refresh:3", "rt", 60)

    assert store.get_set("refresh:3") == ["rt"]
    assert any("fresh set" in rec.getMessage() for rec in caplog.records)


def test_remove_from_set_drops_empty_key(store):
    key = refresh_set_key(4)
    store.add_to_set(key, "rt", 60)
    store.remove_from_set(key, "rt")
    store.remove_from_set(key, "rt")

    assert store.get_set(key) == []
    assert store.sweep() == 0


def test_replace_in_set(store):
    key = refresh_set_key(5)
    store.add_to_set(key, "old", 60)

    assert store.replace_in_set(key, "old", "new", 60) is True
    assert store.replace_in_set(key, "old", "newer", 60) is False
    assert store.get_set(key) == ["new"]


def test_concurrent_replace_has_single_winner(store):
    """Only one of many threads racing on the same member can rotate it."""
    key = refresh_set_key(6)
    store.add_to_set(key, "old", 60)
    barrier = threading.Barrier(8)
    results: list[bool] = []
    lock = threading.Lock()

    def worker(i: int) -> None:
        barrier.wait()
        ok = store.replace_in_set(key, "old", f"new-{i}", 60)
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert len(store.get_set(key)) == 1


def test_cleanup_and_sweep(store, freeze_time):
    with freeze_time("2025-01-01 00:00:00") as frozen:
        store.add_to_set(refresh_set_key(7), "a", 5)
        store.add_to_set(refresh_set_key(7), "b", 500)
        store.set("blacklist:y", "1", 5)

        frozen.tick(6)
        assert store.cleanup_expired_tokens(7) == 1
        assert store.sweep() == 1
        assert store.get_set(refresh_set_key(7)) == ["b"]


def test_dispose_stops_sweeper_and_is_idempotent():
    s = InMemoryTokenStore(sweep_interval=0.01)
    sweeper = s._sweeper
    assert sweeper is not None and sweeper.is_alive()

    s.dispose()
    s.dispose()

    assert not sweeper.is_alive()
    assert s.ping() is True
