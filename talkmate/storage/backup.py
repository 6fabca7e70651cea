import logging
import secrets
import shutil
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

BACKUP_KINDS: tuple[str, ...] = ("users", "conversations", "tickets", "favorites", "patterns")


class BackupInfo(BaseModel):
    id: str
    created_at: str
    path: str


class BackupManager:
    def __init__(self, db: "Database", backups_dir: Path) -> None:
        self.db = db
        self.backups_dir = Path(backups_dir)

    def backup(self) -> str:
        """Copy every entity directory plus the index snapshot. Returns the backup id.

        A kind that fails to copy is logged and skipped; the rest still land.
        """
        backup_id = secrets.token_hex(8)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = self.backups_dir / f"{stamp}-{backup_id}"
        target.mkdir(parents=True, exist_ok=True)

        for kind in BACKUP_KINDS:
            src = self.db.store.kind_dir(kind)
            try:
                shutil.copytree(src, target / kind)
            except (OSError, shutil.Error) as e:
                logger.warning("Backup %s: skipped %s (%s)", backup_id, kind, e)

        self.db.index.save(target / "indexes.json")
        logger.info("Backup created: %s", backup_id)
        return backup_id

    def list_backups(self) -> list[BackupInfo]:
        if not self.backups_dir.is_dir():
            return []
        out = []
        for path in sorted(self.backups_dir.iterdir(), reverse=True):
            if not path.is_dir():
                continue
            stamp, _, backup_id = path.name.rpartition("-")
            try:
                created = datetime.strptime(stamp, "%Y%m%d-%H%M%S").isoformat()
            except ValueError:
                continue
            out.append(BackupInfo(id=backup_id, created_at=created, path=str(path)))
        return out

    def find(self, backup_id: str) -> Optional[BackupInfo]:
        for info in self.list_backups():
            if info.id == backup_id:
                return info
        return None

    def prune(self, keep: int) -> int:
        """Delete all but the ``keep`` newest backups."""
        removed = 0
        for info in self.list_backups()[keep:]:
            try:
                shutil.rmtree(info.path)
                removed += 1
            except OSError as e:
                logger.warning("Could not remove old backup %s: %s", info.id, e)
        if removed:
            logger.info("Pruned %d old backup(s)", removed)
        return removed
