"""Messages waiting for the Telegram bridge to deliver.

Ticket replies, new-ticket alerts and broadcasts land here; the bridge
polls ``pending()`` and acknowledges each message once sent.
"""

import json
import logging
import uuid
from pathlib import Path

from .models import OutboxMessage, now_ms

logger = logging.getLogger(__name__)

# Delivered messages beyond this are trimmed; undelivered ones are never dropped
MAX_MESSAGES = 500
DELIVERED_TTL_MS = 24 * 3_600_000


def _trim(items: list[dict]) -> list[dict]:
    """Drop the oldest delivered messages until the list fits MAX_MESSAGES."""
    excess = len(items) - MAX_MESSAGES
    if excess <= 0:
        return items
    kept = []
    for m in reversed(items):
        if excess > 0 and m.get("delivered", False):
            excess -= 1
            continue
        kept.append(m)
    if excess > 0:
        logger.warning("Outbox holds %d undelivered message(s) over its soft limit", excess)
    kept.reverse()
    return kept


class Outbox:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load_raw(self) -> list[dict]:
        if self.path.exists():
            try:
                return json.loads(self.path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.error("Failed to load %s: %s", self.path.name, e)
        return []

    def _save_raw(self, items: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(_trim(items), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def enqueue(self, chat_id, text: str, kind: str = "message") -> OutboxMessage:
        msg = OutboxMessage(id=uuid.uuid4().hex[:12], chat_id=str(chat_id), text=text, kind=kind)
        items = self._load_raw()
        items.insert(0, msg.model_dump())
        self._save_raw(items)
        return msg

    def enqueue_many(self, chat_ids, text: str, kind: str = "broadcast") -> int:
        """Queue one copy per chat; returns how many were stored."""
        items = self._load_raw()
        fresh = [
            OutboxMessage(id=uuid.uuid4().hex[:12], chat_id=str(chat_id), text=text, kind=kind).model_dump()
            for chat_id in chat_ids
        ]
        self._save_raw(fresh[::-1] + items)
        return len(fresh)

    def pending(self) -> list[OutboxMessage]:
        """Undelivered messages, oldest first."""
        return [OutboxMessage(**m) for m in reversed(self._load_raw()) if not m.get("delivered", False)]

    def ack(self, message_id: str) -> bool:
        """Mark delivered and drop delivered messages older than 24h."""
        items = self._load_raw()
        now = now_ms()
        found = False
        kept = []
        for m in items:
            if m["id"] == message_id:
                m["delivered"] = True
                found = True
            if m.get("delivered", False) and now - m.get("created_at", 0) > DELIVERED_TTL_MS:
                continue
            kept.append(m)
        self._save_raw(kept)
        return found
