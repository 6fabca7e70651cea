from typing import TYPE_CHECKING, Optional

from .models import SearchHit

if TYPE_CHECKING:
    from .database import Database


class SearchService:
    """Case-insensitive substring search over favorites, tickets and replies."""

    def __init__(self, db: "Database") -> None:
        self.db = db

    def __call__(self, query: str, user_id: Optional[str] = None, limit: int = 20) -> list[SearchHit]:
        needle = query.lower().strip()
        if not needle:
            return []
        hits: list[SearchHit] = []

        # Favorites are private; only searched for their owner
        if user_id is not None:
            for fav in self.db.favorites.list_by_user(user_id):
                if needle in fav.full_text.lower():
                    hits.append(SearchHit(
                        type="favorite",
                        id=fav.id,
                        preview=fav.text[:100],
                        timestamp=fav.context.timestamp,
                    ))

        tickets = (
            self.db.tickets.list_by_user(user_id)
            if user_id is not None
            else self.db.tickets.list_all()
        )
        for ticket in tickets:
            if needle in ticket.message.lower() or needle in ticket.id.lower():
                hits.append(SearchHit(
                    type="ticket",
                    id=ticket.id,
                    preview=ticket.message[:100],
                    timestamp=ticket.created_at,
                    status=ticket.status,
                ))
            for reply in ticket.replies:
                if needle in reply.message.lower():
                    hits.append(SearchHit(
                        type="reply",
                        id=reply.id,
                        ticket_id=ticket.id,
                        preview=reply.message[:100],
                        timestamp=reply.timestamp,
                    ))

        return hits[:limit]
