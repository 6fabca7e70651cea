"""One JSON file per entity: ``<base>/<kind>/<key>.json``."""

import json
import logging
from pathlib import Path
from typing import Iterator, Optional

from .errors import CorruptRecord, InvalidKey, StorageIOError

logger = logging.getLogger(__name__)

# patterns/vectors/temporal are reserved; nothing writes to them yet
KINDS: tuple[str, ...] = (
    "users",
    "conversations",
    "favorites",
    "tickets",
    "patterns",
    "vectors",
    "temporal",
)

_FORBIDDEN_IN_KEY = ("/", "\\", "\0")


def check_key(kind: str, key: str) -> None:
    """Raise InvalidKey unless ``key`` names a plain file inside the kind directory."""
    if kind not in KINDS:
        raise InvalidKey(kind, key, f"unknown kind {kind!r}")
    if not key or ".." in key or any(c in key for c in _FORBIDDEN_IN_KEY):
        raise InvalidKey(kind, key, f"invalid key {key!r}")


class RecordStore:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def ensure_directories(self) -> None:
        for kind in KINDS:
            try:
                (self.base_dir / kind).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageIOError(kind, "", f"cannot create {kind} directory: {e}") from e

    def kind_dir(self, kind: str) -> Path:
        return self.base_dir / kind

    def path(self, kind: str, key: str) -> Path:
        check_key(kind, key)
        return self.base_dir / kind / f"{key}.json"

    def write(self, kind: str, key: str, data: dict) -> None:
        """Overwrite the record unconditionally (last writer wins)."""
        path = self.path(kind, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise StorageIOError(kind, key, f"write failed: {e}") from e

    def read(self, kind: str, key: str) -> Optional[dict]:
        """Return the record, or None if there is no file for it."""
        path = self.path(kind, key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageIOError(kind, key, f"read failed: {e}") from e
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptRecord(kind, key, f"invalid JSON in {path.name}: {e}") from e

    def exists(self, kind: str, key: str) -> bool:
        return self.path(kind, key).is_file()

    def delete(self, kind: str, key: str) -> bool:
        try:
            self.path(kind, key).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageIOError(kind, key, f"delete failed: {e}") from e

    def keys(self, kind: str, prefix: str = "") -> list[str]:
        directory = self.kind_dir(kind)
        if not directory.is_dir():
            return []
        # prefix is matched literally, never as a glob
        return sorted(
            p.stem
            for p in directory.glob("*.json")
            if p.stem.startswith(prefix) and p.is_file()
        )

    def count(self, kind: str) -> int:
        return len(self.keys(kind))

    def iter_records(self, kind: str, prefix: str = "") -> Iterator[tuple[str, dict]]:
        """Yield (key, data) for every readable record; bad files are skipped."""
        for key in self.keys(kind, prefix):
            try:
                data = self.read(kind, key)
            except CorruptRecord as e:
                logger.warning("Skipping corrupt record: %s", e)
                continue
            except StorageIOError as e:
                logger.warning("Skipping unreadable record: %s", e)
                continue
            if data is not None:
                yield key, data
