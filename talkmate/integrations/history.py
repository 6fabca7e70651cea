import time
from dataclasses import dataclass, field
from typing import Optional

MESSAGE_TTL = 3600  # 1 hour
MAX_MESSAGES = 20


@dataclass
class _Entry:
    role: str
    content: str
    timestamp: float = field(default_factory=time.time)


class ConversationHistory:
    """Recent chat turns per sender, kept in memory only."""

    def __init__(self, max_messages: int = MAX_MESSAGES, ttl: int = MESSAGE_TTL) -> None:
        self.max_messages = max_messages
        self.ttl = ttl
        self._store: dict[str, list[_Entry]] = {}

    def add_message(self, sender: str, role: str, content: str) -> None:
        entries = self._store.setdefault(sender, [])
        entries.append(_Entry(role=role, content=content))
        if len(entries) > self.max_messages:
            self._store[sender] = entries[-self.max_messages:]

    def get_messages(self, sender: str) -> list[dict]:
        if sender not in self._store:
            return []
        now = time.time()
        self._store[sender] = [
            e for e in self._store[sender] if now - e.timestamp < self.ttl
        ]
        return [{"role": e.role, "content": e.content} for e in self._store[sender]]

    def last_reply(self, sender: str) -> Optional[str]:
        for entry in reversed(self.get_messages(sender)):
            if entry["role"] == "assistant":
                return entry["content"]
        return None

    def clear(self, sender: str) -> None:
        self._store.pop(sender, None)

    def prune_expired(self) -> int:
        """Drop expired turns for every sender; returns senders removed."""
        now = time.time()
        removed = 0
        for sender in list(self._store):
            kept = [e for e in self._store[sender] if now - e.timestamp < self.ttl]
            if kept:
                self._store[sender] = kept
            else:
                del self._store[sender]
                removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._store)


# Shared by the Telegram route and the cleanup job
history = ConversationHistory()
