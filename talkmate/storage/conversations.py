import logging
import secrets
from typing import TYPE_CHECKING, Optional, Union

from ..analysis.heuristics import (
    content_fingerprint,
    conversation_sentiment,
    conversation_topics,
)
from .models import Conversation, ConversationMessage, now_ms

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

KIND = "conversations"


class ConversationManager:
    def __init__(self, db: "Database") -> None:
        self.db = db

    def save(
        self, user_id, messages: list[Union[ConversationMessage, dict]]
    ) -> Conversation:
        """Persist a whole conversation as a new record. There is no update path."""
        msgs = [
            m if isinstance(m, ConversationMessage) else ConversationMessage(**m)
            for m in messages
        ]
        conv = Conversation(
            id=secrets.token_hex(8),
            user_id=str(user_id),
            messages=msgs,
            timestamp=now_ms(),
            vector=content_fingerprint(msgs),
            sentiment=conversation_sentiment(msgs),
            topics=conversation_topics(msgs),
        )
        self.db.put(KIND, conv.id, conv)
        logger.info("Saved conversation %s for user %s (%d messages)", conv.id, user_id, len(msgs))
        return conv

    def get(self, conv_id: str) -> Optional[Conversation]:
        return self.db.get(KIND, conv_id)

    def list_by_user(self, user_id) -> list[Conversation]:
        user_id = str(user_id)
        convs = [c for c in self.db.scan(KIND) if c.user_id == user_id]
        convs.sort(key=lambda c: c.timestamp, reverse=True)
        return convs
