import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class EntityIndex:
    """kind -> {id -> last touched ms}.

    A hint only: directory listings are the source of truth for counts.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: dict[str, dict[str, int]] = {}

    def load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Failed to load index snapshot, starting fresh")
            return
        if isinstance(data, dict):
            self._entries = {
                kind: dict(ids) for kind, ids in data.items() if isinstance(ids, dict)
            }

    def touch(self, kind: str, entity_id: str, timestamp: int) -> None:
        self._entries.setdefault(kind, {})[entity_id] = timestamp

    def remove(self, kind: str, entity_id: str) -> None:
        self._entries.get(kind, {}).pop(entity_id, None)

    def ids(self, kind: str) -> dict[str, int]:
        return dict(self._entries.get(kind, {}))

    def snapshot(self) -> dict[str, dict[str, int]]:
        return {kind: dict(ids) for kind, ids in self._entries.items()}

    def save(self, path: Optional[Path] = None) -> Path:
        target = Path(path) if path else self.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            json.dumps(self.snapshot(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        return target
