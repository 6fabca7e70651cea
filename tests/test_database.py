"""Tests for the storage facade: read-through, prefetch wiring, cleanup, index."""

import json

import pytest

from talkmate.config import StorageConfig
from talkmate.storage.cache import cache_key
from talkmate.storage.database import Database
from talkmate.storage.errors import InvalidKey


def test_unregistered_user_is_none_not_error(db):
    assert db.users.get("999") is None
    assert db.get("users", "user:999") is None


def test_read_after_write_round_trip(db, alice):
    db.cache.clear()
    loaded = db.users.get("42")
    assert loaded == alice
    assert loaded.model_dump() == alice.model_dump()


def test_corrupt_user_file_reads_as_missing(db):
    (db.base_dir / "users" / "user:13.json").write_text("{{{", encoding="utf-8")
    assert db.users.get("13") is None


def test_reads_are_tracked(db, alice):
    ckey = cache_key("users", "user:42")
    db.users.get("42")
    db.users.get("42")
    assert len(db.tracker.accesses(ckey)) == 2


def test_prediction_cycle_prefetches_into_predictive_tier(db, alice):
    ckey = cache_key("users", "user:42")
    db.cache.discard(ckey)
    for i in range(80):
        db.tracker.record(ckey, at_ms=i * 1000)

    loaded = db.run_prediction_cycle(at_ms=79_000)

    assert loaded == [ckey]
    assert ckey not in db.cache
    assert db.cache.predicted_size == 1
    # The next read is served from the predictive tier and promoted
    assert db.users.get("42") == alice
    assert ckey in db.cache
    assert db.cache.predicted_size == 0


def test_cache_is_bounded(tmp_path):
    small = Database(tmp_path / "records", StorageConfig(cache_capacity=3))
    for i in range(10):
        small.users.register(str(i))
    assert len(small.cache) == 3
    # Evicted users are still readable from disk
    assert small.users.get("0").id == "0"


def test_cleanup_drops_stale_patterns_and_saves_index(db, alice):
    db.tracker.record("users/user:42", at_ms=0)
    dropped = db.cleanup(at_ms=10 * 3_600_000)
    assert dropped == 1
    snapshot = json.loads((db.base_dir / "indexes.json").read_text(encoding="utf-8"))
    assert "42" in snapshot["users"]


def test_index_survives_restart(tmp_path):
    first = Database(tmp_path / "records")
    first.users.register("7")
    first.close()

    second = Database(tmp_path / "records")
    assert "7" in second.index.ids("users")


def test_traversal_sender_cannot_write_outside_records(db, tmp_path):
    with pytest.raises(InvalidKey):
        db.users.register("x/../../../escaped")
    assert list(tmp_path.rglob("escaped.json")) == []
    assert db.users.get("x/../../../escaped") is None
    assert db.favorites.remove("42", "../../users/user:42") is False


def test_prefetch_does_not_count_as_cache_hit(db, alice):
    ckey = cache_key("users", "user:42")
    hits = db.cache.hits
    assert db.load_predicted(ckey) == alice
    assert db.cache.hits == hits


def test_cleanup_drops_prefetched_records_of_forgotten_keys(db, alice):
    ckey = cache_key("users", "user:42")
    db.cache.discard(ckey)
    db.tracker.record(ckey, at_ms=0)
    db.load_predicted(ckey)
    assert db.cache.predicted_size == 1

    db.cleanup(at_ms=10 * 3_600_000)
    assert db.cache.predicted_size == 0
