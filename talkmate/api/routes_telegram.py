import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..config import AppConfig
from ..integrations.chat_handler import process_chat_message
from ..storage.database import Database
from .dependencies import get_app_config, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telegram", tags=["telegram"])


class ProcessRequest(BaseModel):
    # Telegram user or chat id
    sender: str = Field(pattern=r"^-?\d+$")
    text: str
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language_code: str = ""


@router.post("/process")
async def process_message(
    req: ProcessRequest,
    db: Database = Depends(get_db),
    config: AppConfig = Depends(get_app_config),
) -> dict:
    """Called by the Telegram bridge for every incoming message."""
    logger.info("Telegram message from %s: %s", req.sender, req.text[:100])
    reply = await process_chat_message(
        db,
        sender=req.sender,
        text=req.text,
        profile=req.model_dump(include={"first_name", "last_name", "username", "language_code"}),
        config=config,
    )
    return reply.model_dump()


@router.get("/outbox")
async def pending_messages(db: Database = Depends(get_db)) -> dict:
    return {"messages": [m.model_dump() for m in db.outbox.pending()]}


@router.post("/outbox/{message_id}/ack")
async def ack_message(message_id: str, db: Database = Depends(get_db)) -> dict:
    if not db.outbox.ack(message_id):
        raise HTTPException(status_code=404, detail="Message not found")
    return {"status": "delivered"}
