"""Message processing for the user-facing Telegram bot."""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..analysis.heuristics import (
    analyze_intent,
    fallback_response,
    response_confidence,
    sentiment_label,
    summarize,
    text_sentiment,
    text_topics,
)
from ..config import AppConfig, get_config
from ..i18n import LANG_NAMES, is_supported, lang_instruction, t
from ..llm.base import LLMProvider
from ..llm.catalog import MODELS, get_model
from ..llm.registry import get_provider, resolve_model
from ..storage.database import Database
from ..storage.models import User
from .history import ConversationHistory, history as default_history

logger = logging.getLogger(__name__)


class ChatReply(BaseModel):
    reply: str
    parts: list[str] = []
    intent: str = "general"
    model: str = ""
    confidence: float = 0.0
    fallback: bool = False


def split_message(text: str, max_length: int = 4096) -> list[str]:
    """Cut ``text`` into chunks Telegram will accept."""
    if len(text) <= max_length:
        return [text]
    return [text[i:i + max_length] for i in range(0, len(text), max_length)]


def _system_prompt(config: AppConfig, lang: str) -> str:
    return (
        f"You are {config.telegram.bot_name}, a friendly and knowledgeable AI "
        "assistant chatting with a user on Telegram. Keep answers clear and "
        "well structured, and respond with appropriate emotional intelligence."
        + lang_instruction(lang)
    )


def _reply(text: str, config: AppConfig, **kwargs) -> ChatReply:
    return ChatReply(
        reply=text,
        parts=split_message(text, config.telegram.max_message_length),
        **kwargs,
    )


async def process_chat_message(
    db: Database,
    sender: str,
    text: str,
    profile: Optional[dict] = None,
    provider: Optional[LLMProvider] = None,
    config: Optional[AppConfig] = None,
    history: Optional[ConversationHistory] = None,
) -> ChatReply:
    """Handle one incoming Telegram message and return the bot's reply.

    Args:
        db: The storage facade.
        sender: Telegram user id (equals the chat id in private chats).
        text: Message text.
        profile: Telegram ``from`` fields used on first contact.
        provider: Chat-completion provider; defaults to the configured Groq one.
    """
    config = config or get_config()
    history = history if history is not None else default_history
    sender = str(sender)
    stripped = text.strip()

    is_command = stripped.startswith("/")
    user = db.users.register(sender, profile, count_message=not is_command)

    if is_command:
        db.users.record_command(sender)
        return _reply(
            _handle_command(db, user, stripped, config, history), config, intent="command"
        )

    db.users.track_message(sender, stripped)
    intent = analyze_intent(stripped)
    model = resolve_model(user.model, config.groq.default_model)

    provider = provider or get_provider()
    if provider is None:
        return _reply(t("no_provider", user.language), config, intent=intent, fallback=True)

    messages = [
        {"role": "system", "content": _system_prompt(config, user.language)},
        *history.get_messages(sender),
        {"role": "user", "content": stripped},
    ]
    logger.info("[telegram] user=%s model=%s intent=%s", sender, model, intent)

    try:
        answer = await provider.complete(messages, model)
    except Exception:
        logger.exception("Chat completion failed for %s", sender)
        return _reply(
            fallback_response(intent), config, intent=intent, model=model, fallback=True
        )

    history.add_message(sender, "user", stripped)
    history.add_message(sender, "assistant", answer)
    return _reply(
        answer,
        config,
        intent=intent,
        model=model,
        confidence=response_confidence(answer),
    )


def _handle_command(
    db: Database,
    user: User,
    text: str,
    config: AppConfig,
    history: ConversationHistory,
) -> str:
    head, _, arg = text.partition(" ")
    command = head.split("@", 1)[0].lower()
    arg = arg.strip()
    lang = user.language

    if command == "/start":
        return t("welcome", lang, name=user.first_name or user.username or "there",
                 bot=config.telegram.bot_name)

    if command == "/help":
        return t("help_text", lang)

    if command == "/clear":
        history.clear(user.id)
        return t("clear_history", lang)

    if command == "/models":
        current = resolve_model(user.model, config.groq.default_model)
        lines = [t("models_header", lang, current=current)]
        lines += [
            t("model_line", lang, id=m.id, name=m.name, context=m.context, best_for=m.best_for)
            for m in MODELS
        ]
        return "\n".join(lines)

    if command == "/model":
        info = get_model(arg)
        if info is None:
            return t("model_unknown", lang, model=arg)
        db.users.set_model(user.id, info.id)
        return t("model_set", lang, name=info.name)

    if command == "/lang":
        code = arg.lower()
        if not is_supported(code):
            return t("lang_unknown", lang, lang=arg, choices=", ".join(LANG_NAMES))
        db.users.set_language(user.id, code)
        return t("lang_set", code, name=LANG_NAMES[code])

    if command == "/save":
        answer = history.last_reply(user.id)
        if not answer:
            return t("fav_nothing", lang)
        topics = text_topics(answer)
        fav = db.favorites.add(user.id, answer, context={
            "model": resolve_model(user.model, config.groq.default_model),
            "topic": topics[0] if topics else None,
            "sentiment": text_sentiment(answer),
        })
        if fav is None:
            return t("fav_limit", lang)
        return t("fav_saved", lang, id=fav.id)

    if command == "/favorites":
        favs = db.favorites.list_by_user(user.id)
        if not favs:
            return t("fav_empty", lang)
        lines = [t("fav_header", lang, count=len(favs))]
        lines += [f"#{f.id}: {f.text[:80]}" for f in favs[:10]]
        return "\n".join(lines)

    if command == "/unfav":
        if db.favorites.remove(user.id, arg):
            return t("fav_removed", lang, id=arg.upper())
        return t("fav_not_found", lang, id=arg.upper())

    if command == "/clearfavs":
        removed = db.favorites.clear(user.id)
        if not removed:
            return t("fav_empty", lang)
        return t("fav_cleared", lang, count=removed)

    if command == "/savechat":
        turns = history.get_messages(user.id)
        if not turns:
            return t("chat_nothing", lang)
        conv = db.conversations.save(user.id, turns)
        return t("chat_saved", lang, count=len(conv.messages), id=conv.id)

    if command == "/ticket":
        return _open_ticket(db, user, arg, config)

    if command == "/mytickets":
        tickets = db.tickets.list_by_user(user.id)
        if not tickets:
            return t("ticket_none", lang)
        lines = [t("ticket_header", lang)]
        lines += [
            t("ticket_line", lang, id=tk.id, status=tk.status, preview=tk.message[:60])
            for tk in tickets[:10]
        ]
        return "\n".join(lines)

    if command == "/stats":
        fresh = db.users.get(user.id) or user
        return t(
            "stats_text", lang,
            messages=fresh.message_count,
            commands=fresh.command_count,
            favorites=fresh.favorite_count,
            tickets=fresh.ticket_count,
            mood=sentiment_label(fresh.sentiment_score),
            model=resolve_model(fresh.model, config.groq.default_model),
            since=datetime.fromtimestamp(fresh.first_seen / 1000).strftime("%b %d, %Y"),
        )

    return t("help_text", lang)


def _open_ticket(db: Database, user: User, message: str, config: AppConfig) -> str:
    lang = user.language
    if not message:
        return t("ticket_usage", lang)
    if len(message) > config.telegram.max_ticket_length:
        return t("ticket_too_long", lang, limit=config.telegram.max_ticket_length)

    ticket = db.tickets.create(user.id, user.display_name, message)
    if config.admin.chat_ids:
        alert = t(
            "ticket_alert", "en",
            id=ticket.id, name=ticket.user_name, user_id=user.id,
            priority=ticket.priority, category=ticket.category,
            summary=summarize(message), message=message,
        )
        db.outbox.enqueue_many(config.admin.chat_ids, alert, kind="ticket_alert")
    return t(
        "ticket_created", lang,
        id=ticket.id, priority=ticket.priority, category=ticket.category,
        suggestion=ticket.ai_analysis.suggested_response,
    )
