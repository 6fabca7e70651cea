import pytest

from talkmate.config import AppConfig, StorageConfig
from talkmate.storage.database import Database


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "records", StorageConfig(), backups_dir=tmp_path / "backups")


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def alice(db):
    return db.users.register("42", {"first_name": "Alice", "username": "alice", "language_code": "en"})
