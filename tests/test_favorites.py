import pytest

from talkmate.storage.errors import StorageIOError
from talkmate.storage.favorites import MAX_DISPLAY_LENGTH


def test_add_truncates_display_text_and_records_metadata(db, alice):
    text = "word " * 200
    fav = db.favorites.add("42", text, context={"model": "llama-3.3-70b-versatile"})
    assert len(fav.text) == MAX_DISPLAY_LENGTH
    assert fav.full_text == text
    assert fav.metadata.length == len(text)
    assert fav.metadata.word_count == len(text.split(" "))
    assert len(fav.metadata.hash) == 32
    assert fav.context.model == "llama-3.3-70b-versatile"
    assert db.users.get("42").favorite_count == 1


def test_list_by_user_does_not_leak_across_prefixes(db):
    db.users.register("1")
    db.users.register("12")
    db.favorites.add("1", "mine")
    db.favorites.add("12", "theirs")
    assert [f.full_text for f in db.favorites.list_by_user("1")] == ["mine"]
    assert [f.full_text for f in db.favorites.list_by_user("12")] == ["theirs"]


def test_counter_never_exceeds_files(db, alice, monkeypatch):
    db.favorites.add("42", "kept")

    def failing_update(*args, **kwargs):
        raise StorageIOError("users", "user:42", "disk full")

    monkeypatch.setattr(db.users, "update", failing_update)
    with pytest.raises(StorageIOError):
        db.favorites.add("42", "rolled back")
    monkeypatch.undo()

    files = db.store.keys("favorites", "42-")
    assert len(files) == 1
    assert db.users.get("42").favorite_count <= len(files)


def test_get_and_remove(db, alice):
    fav = db.favorites.add("42", "something nice")
    assert db.favorites.get("42", fav.id.lower()) == fav
    assert db.favorites.remove("42", fav.id) is True
    assert db.favorites.remove("42", fav.id) is False
    assert db.favorites.get("42", fav.id) is None
    assert db.users.get("42").favorite_count == 0


def test_clear_removes_all_and_resets_counter(db, alice):
    for i in range(3):
        db.favorites.add("42", f"fav {i}")
    assert db.favorites.clear("42") == 3
    assert db.favorites.list_by_user("42") == []
    assert db.users.get("42").favorite_count == 0


def test_cap_per_user(db, alice, monkeypatch):
    monkeypatch.setattr("talkmate.storage.favorites.MAX_FAVORITES_PER_USER", 2)
    assert db.favorites.add("42", "a") is not None
    assert db.favorites.add("42", "b") is not None
    assert db.favorites.add("42", "c") is None
