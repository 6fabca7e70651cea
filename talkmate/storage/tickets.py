import logging
import secrets
from typing import TYPE_CHECKING, Optional

from ..analysis.heuristics import (
    analyze_ticket,
    extract_tags,
    ticket_category,
    ticket_priority,
    ticket_sentiment,
)
from .errors import StorageError
from .models import Ticket, TicketAnalysis, TicketReply, now_ms

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

KIND = "tickets"
TICKET_PREFIX = "TK"


class TicketManager:
    def __init__(self, db: "Database") -> None:
        self.db = db

    def _new_id(self) -> str:
        while True:
            ticket_id = TICKET_PREFIX + secrets.token_hex(3).upper()
            if not self.db.store.exists(KIND, ticket_id):
                return ticket_id

    def create(self, user_id, user_name: str, message: str) -> Ticket:
        user_id = str(user_id)
        now = now_ms()
        ticket = Ticket(
            id=self._new_id(),
            user_id=user_id,
            user_name=user_name,
            message=message,
            status="open",
            priority=ticket_priority(message),
            category=ticket_category(message),
            sentiment=ticket_sentiment(message),
            created_at=now,
            updated_at=now,
            tags=extract_tags(message),
            ai_analysis=TicketAnalysis(**analyze_ticket(message)),
        )
        self.db.put(KIND, ticket.id, ticket)
        logger.info(
            "Ticket %s opened by %s (%s/%s)",
            ticket.id, user_id, ticket.priority, ticket.category,
        )

        # Counter is advisory; the ticket already exists
        user = self.db.users.get(user_id)
        if user is not None:
            try:
                self.db.users.update(user_id, ticket_count=user.ticket_count + 1)
            except StorageError as e:
                logger.warning("Could not bump ticket count for %s: %s", user_id, e)
        return ticket

    def get(self, ticket_id: str) -> Optional[Ticket]:
        return self.db.get(KIND, ticket_id.upper())

    def _save(self, ticket: Ticket, **changes) -> Ticket:
        data = ticket.model_dump()
        data.update(changes)
        data["updated_at"] = max(now_ms(), ticket.created_at)
        updated = Ticket.model_validate(data)
        self.db.put(KIND, updated.id, updated)
        return updated

    def add_reply(
        self, ticket_id: str, message: str, author: str = "admin", author_id: str = ""
    ) -> Optional[TicketReply]:
        """Append a reply. None (and nothing written) if the ticket is unknown.

        The first admin reply moves an open ticket to in-progress.
        """
        ticket = self.get(ticket_id)
        if ticket is None:
            return None
        reply = TicketReply(
            id=secrets.token_hex(2).upper(),
            author=author,
            author_id=str(author_id),
            message=message,
            timestamp=now_ms(),
        )
        changes = {"replies": [*ticket.model_dump()["replies"], reply.model_dump()]}
        if author == "admin" and ticket.status == "open":
            changes["status"] = "in-progress"
        self._save(ticket, **changes)
        return reply

    def close(self, ticket_id: str) -> bool:
        ticket = self.get(ticket_id)
        if ticket is None:
            return False
        if ticket.status != "closed":
            self._save(ticket, status="closed", closed_at=now_ms())
            logger.info("Ticket %s closed", ticket.id)
        return True

    def reopen(self, ticket_id: str) -> bool:
        ticket = self.get(ticket_id)
        if ticket is None:
            return False
        if ticket.status == "closed":
            self._save(ticket, status="open", closed_at=None)
            logger.info("Ticket %s reopened", ticket.id)
        return True

    def list_all(self, status: Optional[str] = None) -> list[Ticket]:
        tickets = self.db.scan(KIND)
        if status:
            tickets = [t for t in tickets if t.status == status]
        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return tickets

    def list_by_user(self, user_id) -> list[Ticket]:
        user_id = str(user_id)
        return [t for t in self.list_all() if t.user_id == user_id]
