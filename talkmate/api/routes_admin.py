import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..i18n import t
from ..storage.database import Database
from .dependencies import get_db, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


class ReplyRequest(BaseModel):
    message: str
    admin_id: str = ""


class BroadcastRequest(BaseModel):
    message: str


def _user_language(db: Database, user_id: str) -> str:
    user = db.users.get(user_id)
    return user.language if user else "en"


@router.get("/stats")
async def stats(db: Database = Depends(get_db)):
    return db.aggregator.stats().model_dump()


@router.get("/users")
async def list_users(page: int = 1, per_page: int = 10, db: Database = Depends(get_db)):
    users = db.users.list_all()
    page = max(page, 1)
    start = (page - 1) * per_page
    return {
        "total": len(users),
        "page": page,
        "pages": max(1, -(-len(users) // per_page)),
        "users": [u.model_dump() for u in users[start:start + per_page]],
    }


@router.get("/users/{user_id}")
async def get_user(user_id: str, db: Database = Depends(get_db)):
    user = db.users.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": user.model_dump()}


@router.get("/users/{user_id}/tickets")
async def user_tickets(user_id: str, db: Database = Depends(get_db)):
    return {"tickets": [tk.model_dump() for tk in db.tickets.list_by_user(user_id)]}


@router.get("/tickets")
async def list_tickets(status: Optional[str] = None, db: Database = Depends(get_db)):
    return {"tickets": [tk.model_dump() for tk in db.tickets.list_all(status)]}


@router.get("/tickets/{ticket_id}")
async def get_ticket(ticket_id: str, db: Database = Depends(get_db)):
    ticket = db.tickets.get(ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return {"ticket": ticket.model_dump()}


@router.post("/tickets/{ticket_id}/reply")
async def reply_ticket(ticket_id: str, req: ReplyRequest, db: Database = Depends(get_db)):
    reply = db.tickets.add_reply(ticket_id, req.message, author="admin", author_id=req.admin_id)
    if not reply:
        raise HTTPException(status_code=404, detail="Ticket not found")
    ticket = db.tickets.get(ticket_id)
    lang = _user_language(db, ticket.user_id)
    db.outbox.enqueue(
        ticket.user_id,
        t("ticket_reply_notice", lang, id=ticket.id, message=req.message),
        kind="ticket_reply",
    )
    return {"reply": reply.model_dump(), "status": ticket.status}


@router.post("/tickets/{ticket_id}/close")
async def close_ticket(ticket_id: str, db: Database = Depends(get_db)):
    if not db.tickets.close(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    ticket = db.tickets.get(ticket_id)
    lang = _user_language(db, ticket.user_id)
    db.outbox.enqueue(
        ticket.user_id, t("ticket_closed_notice", lang, id=ticket.id), kind="ticket_reply"
    )
    return {"ticket": ticket.model_dump()}


@router.post("/tickets/{ticket_id}/reopen")
async def reopen_ticket(ticket_id: str, db: Database = Depends(get_db)):
    if not db.tickets.reopen(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return {"ticket": db.tickets.get(ticket_id).model_dump()}


@router.get("/search")
async def search(q: str, user_id: Optional[str] = None, db: Database = Depends(get_db)):
    return {"results": [h.model_dump() for h in db.search(q, user_id=user_id)]}


@router.post("/broadcast")
async def broadcast(req: BroadcastRequest, db: Database = Depends(get_db)):
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is empty")
    recipients = [u.id for u in db.users.list_all()]
    queued = db.outbox.enqueue_many(recipients, req.message, kind="broadcast")
    logger.info("Broadcast queued for %d user(s)", queued)
    return {"queued": queued}


@router.post("/backup")
async def create_backup(db: Database = Depends(get_db)):
    backup_id = db.backups.backup()
    return {"backup_id": backup_id}


@router.get("/backups")
async def list_backups(db: Database = Depends(get_db)):
    return {"backups": [b.model_dump() for b in db.backups.list_backups()]}


@router.get("/backups/{backup_id}")
async def get_backup(backup_id: str, db: Database = Depends(get_db)):
    info = db.backups.find(backup_id)
    if not info:
        raise HTTPException(status_code=404, detail="Backup not found")
    return {"backup": info.model_dump()}
