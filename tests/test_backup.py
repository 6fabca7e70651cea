import json
from pathlib import Path

from talkmate.storage.backup import BACKUP_KINDS


def test_backup_copies_entities_and_index(db, alice):
    db.tickets.create("42", "Alice", "help")
    backup_id = db.backups.backup()

    info = db.backups.find(backup_id)
    assert info is not None
    root = Path(info.path)
    assert (root / "users" / "user:42.json").exists()
    assert len(list((root / "tickets").glob("*.json"))) == 1
    assert "42" in json.loads((root / "indexes.json").read_text(encoding="utf-8"))["users"]
    for kind in BACKUP_KINDS:
        assert (root / kind).is_dir()


def test_missing_kind_is_skipped(db, alice):
    (db.base_dir / "patterns").rmdir()
    backup_id = db.backups.backup()
    root = Path(db.backups.find(backup_id).path)
    assert (root / "users").is_dir()
    assert not (root / "patterns").exists()


def test_prune_keeps_newest(db):
    for _ in range(3):
        db.backups.backup()
    assert db.backups.prune(keep=1) == 2
    assert len(db.backups.list_backups()) == 1


def test_list_ignores_foreign_directories(db):
    (db.backups.backups_dir / "not-a-backup").mkdir(parents=True)
    assert db.backups.list_backups() == []
    assert db.backups.find("whatever") is None
