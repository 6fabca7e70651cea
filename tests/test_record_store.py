"""Tests for the one-file-per-entity record store."""

import pytest

from talkmate.storage.errors import CorruptRecord, InvalidKey
from talkmate.storage.record_store import KINDS, RecordStore


@pytest.fixture
def store(tmp_path):
    s = RecordStore(tmp_path)
    s.ensure_directories()
    return s


def test_ensure_directories_creates_every_kind(store, tmp_path):
    for kind in KINDS:
        assert (tmp_path / kind).is_dir()


def test_write_then_read_returns_equal_record(store):
    record = {"id": "1", "name": "Ada", "tags": ["a", "b"], "nested": {"x": 1.5}}
    store.write("users", "user:1", record)
    assert store.read("users", "user:1") == record


def test_write_overwrites(store):
    store.write("tickets", "TK1", {"status": "open"})
    store.write("tickets", "TK1", {"status": "closed"})
    assert store.read("tickets", "TK1") == {"status": "closed"}


def test_missing_record_is_none(store):
    assert store.read("users", "user:nobody") is None


def test_corrupt_record_raises_distinct_error(store, tmp_path):
    (tmp_path / "users" / "user:7.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(CorruptRecord) as exc:
        store.read("users", "user:7")
    assert exc.value.kind == "users"
    assert exc.value.key == "user:7"


def test_iter_records_skips_corrupt_files(store, tmp_path):
    store.write("favorites", "1-AAAA", {"id": "AAAA"})
    (tmp_path / "favorites" / "1-BBBB.json").write_text("oops", encoding="utf-8")
    assert [k for k, _ in store.iter_records("favorites")] == ["1-AAAA"]


def test_keys_filter_by_prefix(store):
    store.write("favorites", "1-AAAA", {})
    store.write("favorites", "12-BBBB", {})
    assert store.keys("favorites", "1-") == ["1-AAAA"]
    assert store.count("favorites") == 2


def test_delete(store):
    store.write("tickets", "TK1", {})
    assert store.delete("tickets", "TK1") is True
    assert store.delete("tickets", "TK1") is False
    assert not store.exists("tickets", "TK1")


@pytest.mark.parametrize("key", ["x/../../../escaped", "../up", "a\\b", "", "..", "nul\0"])
def test_keys_that_leave_the_kind_directory_are_rejected(store, tmp_path, key):
    with pytest.raises(InvalidKey):
        store.write("users", key, {"id": key})
    assert not (tmp_path.parent / "escaped.json").exists()
    assert list(tmp_path.rglob("*.json")) == []


def test_unknown_kind_is_rejected(store):
    with pytest.raises(InvalidKey):
        store.read("../users", "user:1")


def test_prefix_is_matched_literally(store):
    store.write("favorites", "[1]-AAAA", {"id": "AAAA"})
    store.write("favorites", "1-BBBB", {"id": "BBBB"})
    assert store.keys("favorites", "[1]-") == ["[1]-AAAA"]
    assert store.keys("favorites", "1-") == ["1-BBBB"]
