import logging
from typing import TYPE_CHECKING, Optional

from ..analysis.heuristics import text_sentiment, text_topics, user_vector
from ..i18n import normalize_lang
from .models import User, now_ms

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

KIND = "users"

# Never overwritten by update()
_IMMUTABLE_FIELDS = {"id", "first_seen", "temporal_version"}
_PROFILE_FIELDS = ("first_name", "last_name", "username")


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


class UserManager:
    def __init__(self, db: "Database") -> None:
        self.db = db

    def get(self, user_id) -> Optional[User]:
        return self.db.get(KIND, user_key(str(user_id)))

    def register(
        self, user_id, profile: Optional[dict] = None, count_message: bool = True
    ) -> User:
        """Create the user on first sight; afterwards count the interaction.

        ``profile`` takes Telegram's ``from`` fields (first_name, last_name,
        username, language_code). On repeat contact changed names are merged;
        the language stays whatever the user picked with /lang.
        """
        user_id = str(user_id)
        profile = profile or {}
        existing = self.get(user_id)
        if existing is not None:
            fields = {
                name: profile[name]
                for name in _PROFILE_FIELDS
                if profile.get(name) and profile[name] != getattr(existing, name)
            }
            if count_message:
                fields["message_count"] = existing.message_count + 1
            return self.update(user_id, **fields)

        now = now_ms()
        first_name = profile.get("first_name") or ""
        user = User(
            id=user_id,
            first_name=first_name,
            last_name=profile.get("last_name") or "",
            username=profile.get("username") or "",
            language=normalize_lang(profile.get("language_code")),
            first_seen=now,
            last_seen=now,
            vector=user_vector(user_id, first_name, now),
        )
        self.db.put(KIND, user_key(user_id), user, index_id=user_id)
        logger.info("Registered user %s (%s)", user_id, user.display_name)
        return user

    def update(self, user_id, **fields) -> Optional[User]:
        """Merge ``fields`` into an existing user. None if the user is unknown."""
        user_id = str(user_id)
        user = self.get(user_id)
        if user is None:
            return None

        data = user.model_dump()
        data.update({k: v for k, v in fields.items() if k not in _IMMUTABLE_FIELDS})
        data["last_seen"] = max(now_ms(), user.first_seen)
        data["temporal_version"] = user.temporal_version + 1
        updated = User.model_validate(data)

        self.db.put(KIND, user_key(user_id), updated, index_id=user_id)
        return updated

    def track_message(self, user_id, text: str) -> Optional[User]:
        """Fold a chat message into the running sentiment and topic set."""
        user = self.get(user_id)
        if user is None:
            return None
        n = max(user.message_count, 1)
        sentiment = user.sentiment_score + (text_sentiment(text) - user.sentiment_score) / n
        topics = sorted(set(user.topics) | set(text_topics(text)))
        return self.update(user_id, sentiment_score=sentiment, topics=topics)

    def record_command(self, user_id) -> Optional[User]:
        user = self.get(user_id)
        if user is None:
            return None
        return self.update(user_id, command_count=user.command_count + 1)

    def set_language(self, user_id, language: str) -> Optional[User]:
        return self.update(user_id, language=language)

    def set_model(self, user_id, model: str) -> Optional[User]:
        return self.update(user_id, model=model)

    def list_all(self) -> list[User]:
        users = self.db.scan(KIND)
        users.sort(key=lambda u: u.last_seen, reverse=True)
        return users
