import logging
import secrets
from typing import TYPE_CHECKING, Optional, Union

from ..analysis.heuristics import content_hash, word_count
from .errors import StorageError
from .models import Favorite, FavoriteContext, FavoriteMetadata

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

KIND = "favorites"
MAX_DISPLAY_LENGTH = 500
MAX_FAVORITES_PER_USER = 100


def favorite_key(user_id: str, fav_id: str) -> str:
    return f"{user_id}-{fav_id}"


class FavoriteManager:
    def __init__(self, db: "Database") -> None:
        self.db = db

    def add(
        self,
        user_id,
        text: str,
        context: Union[FavoriteContext, dict, None] = None,
    ) -> Optional[Favorite]:
        """Save ``text`` as a favorite and bump the owner's counter.

        The favorite file is written before the counter. If the counter write
        fails the file is removed again, so the counter never runs ahead of
        the files on disk. Returns None once the per-user cap is reached.
        """
        user_id = str(user_id)
        if len(self.db.store.keys(KIND, f"{user_id}-")) >= MAX_FAVORITES_PER_USER:
            logger.info("User %s hit the favorites cap", user_id)
            return None

        if isinstance(context, dict):
            context = FavoriteContext(**context)
        fav = Favorite(
            id=secrets.token_hex(4).upper(),
            user_id=user_id,
            text=text[:MAX_DISPLAY_LENGTH],
            full_text=text,
            context=context or FavoriteContext(),
            metadata=FavoriteMetadata(
                length=len(text),
                word_count=word_count(text),
                hash=content_hash(text),
            ),
        )
        key = favorite_key(user_id, fav.id)
        self.db.put(KIND, key, fav)

        user = self.db.users.get(user_id)
        if user is not None:
            try:
                self.db.users.update(user_id, favorite_count=user.favorite_count + 1)
            except StorageError:
                logger.error("Counter update failed, rolling back favorite %s", key)
                self.db.delete(KIND, key)
                raise
        return fav

    def get(self, user_id, fav_id: str) -> Optional[Favorite]:
        return self.db.get(KIND, favorite_key(str(user_id), fav_id.upper()))

    def list_by_user(self, user_id) -> list[Favorite]:
        favs = self.db.scan(KIND, prefix=f"{user_id}-")
        favs.sort(key=lambda f: f.context.timestamp, reverse=True)
        return favs

    def remove(self, user_id, fav_id: str) -> bool:
        user_id = str(user_id)
        if not self.db.delete(KIND, favorite_key(user_id, fav_id.upper())):
            return False
        user = self.db.users.get(user_id)
        if user is not None:
            self.db.users.update(user_id, favorite_count=max(0, user.favorite_count - 1))
        return True

    def clear(self, user_id) -> int:
        user_id = str(user_id)
        removed = 0
        for key in self.db.store.keys(KIND, f"{user_id}-"):
            if self.db.delete(KIND, key):
                removed += 1
        if self.db.users.get(user_id) is not None:
            self.db.users.update(user_id, favorite_count=0)
        return removed
