"""Keyword heuristics for sentiment, topics, ticket triage and intent.

Everything here is a pure function of its text input: no I/O, no state.
The word lists are deliberately small; these are routing hints for the bots,
not classifiers.
"""

import hashlib
import re
import time
from typing import Iterable, Optional

# ---- Conversations ----

_CONV_POSITIVE = ["great", "awesome", "love", "amazing", "excellent"]
_CONV_NEGATIVE = ["bad", "terrible", "hate", "awful", "worst"]

TOPIC_KEYWORDS: dict[str, list[str]] = {
    "tech": ["computer", "software", "code", "programming"],
    "science": ["physics", "chemistry", "biology", "experiment"],
    "art": ["music", "painting", "creative", "design"],
    "business": ["money", "startup", "company", "market"],
}

# ---- Tickets ----

_URGENT_WORDS = ["urgent", "emergency", "critical", "immediate", "asap"]
_HIGH_WORDS = ["important", "serious", "major", "significant"]

# Checked in order; first match wins
TICKET_CATEGORIES: list[tuple[str, list[str]]] = [
    ("technical", ["error", "bug", "crash", "broken", "not working"]),
    ("billing", ["payment", "money", "charge", "invoice", "subscription"]),
    ("feature", ["suggest", "feature", "would like", "add"]),
    ("account", ["login", "password", "access", "account"]),
]

_TICKET_POSITIVE = ["good", "great", "awesome", "thanks"]
_TICKET_NEGATIVE = ["bad", "terrible", "awful", "horrible"]

MAX_TAGS = 5

# ---- Chat intent ----

INTENT_KEYWORDS: dict[str, list[str]] = {
    "greeting": ["hello", "hi", "hey", "greetings"],
    "question": ["what", "why", "how", "when", "where", "who"],
    "command": ["do", "make", "create", "generate", "send"],
    "help": ["help", "assist", "support"],
    "feedback": ["good", "great", "bad", "terrible", "love"],
    "farewell": ["bye", "goodbye", "see you", "later"],
}

FALLBACK_RESPONSES: dict[str, str] = {
    "greeting": "Hello! I'm here to help. What can I do for you?",
    "question": "That's an interesting question. Let me think about it...",
    "command": "I'll do my best to help with that.",
    "help": "I'm here to assist you with anything you need.",
    "feedback": "Thank you for your feedback!",
    "farewell": "Goodbye! Feel free to come back anytime.",
    "general": "I'm processing your request. One moment please...",
}

_HEDGING_WORDS = ["maybe", "perhaps", "might", "could", "possibly"]

_TAG_STRIP = ".,;:!?\"'()[]{}<>"


def _count_hits(text: str, words: Iterable[str]) -> int:
    return sum(1 for w in words if w in text)


def _contents(messages: Iterable) -> list[str]:
    out = []
    for m in messages:
        if isinstance(m, dict):
            out.append(m.get("content") or "")
        else:
            out.append(getattr(m, "content", "") or "")
    return out


def conversation_sentiment(messages: Iterable) -> float:
    """Mean per-message (positive hits - negative hits); 0.0 for no messages."""
    contents = _contents(messages)
    if not contents:
        return 0.0
    score = 0
    for content in contents:
        lower = content.lower()
        score += _count_hits(lower, _CONV_POSITIVE)
        score -= _count_hits(lower, _CONV_NEGATIVE)
    return score / len(contents)


def conversation_topics(messages: Iterable) -> list[str]:
    topics: set[str] = set()
    for content in _contents(messages):
        lower = content.lower()
        for topic, keywords in TOPIC_KEYWORDS.items():
            if any(k in lower for k in keywords):
                topics.add(topic)
    return sorted(topics)


def text_sentiment(text: str) -> float:
    return conversation_sentiment([{"content": text}])


def text_topics(text: str) -> list[str]:
    return conversation_topics([{"content": text}])


def ticket_priority(message: str) -> str:
    lower = message.lower()
    if any(w in lower for w in _URGENT_WORDS):
        return "urgent"
    if any(w in lower for w in _HIGH_WORDS):
        return "high"
    return "medium"


def ticket_category(message: str) -> str:
    lower = message.lower()
    for category, keywords in TICKET_CATEGORIES:
        if any(k in lower for k in keywords):
            return category
    return "general"


def ticket_sentiment(message: str) -> int:
    lower = message.lower()
    return _count_hits(lower, _TICKET_POSITIVE) - _count_hits(lower, _TICKET_NEGATIVE)


def extract_tags(message: str, limit: int = MAX_TAGS) -> list[str]:
    """Hashtags, then capitalized words longer than 3 chars, lowercased and deduped."""
    tags: list[str] = []
    for word in message.split():
        if word.startswith("#"):
            tag = word[1:].strip(_TAG_STRIP).lower()
        elif word[0].isupper() and len(word) > 3:
            tag = word.strip(_TAG_STRIP).lower()
        else:
            continue
        if tag and tag not in tags:
            tags.append(tag)
        if len(tags) >= limit:
            break
    return tags


def suggest_response(message: str) -> str:
    lower = message.lower()
    if "thank" in lower:
        return "You're welcome! Is there anything else I can help with?"
    if "help" in lower:
        return "I'd be happy to help. Could you provide more details?"
    return "Thank you for your message. An admin will respond shortly."


def analyze_ticket(message: str) -> dict:
    """Canned triage record stored on every ticket."""
    return {
        "complexity": len(message) / 100,
        "requires_attention": len(message) > 500,
        "suggested_response": suggest_response(message),
        "estimated_resolution": f"{len(message) / 200:g} minutes",
    }


def analyze_intent(message: str) -> str:
    """Intent with the most keyword hits; ties keep the earlier intent."""
    lower = message.lower()
    words = set(re.findall(r"[a-z']+", lower))
    best, best_score = "general", 0
    for intent, keywords in INTENT_KEYWORDS.items():
        score = sum(1 for k in keywords if (k in lower if " " in k else k in words))
        if score > best_score:
            best, best_score = intent, score
    return best


def fallback_response(intent: str) -> str:
    return FALLBACK_RESPONSES.get(intent, FALLBACK_RESPONSES["general"])


def response_confidence(response: Optional[str]) -> float:
    """Longer, less hedged responses score higher. Range 0..1."""
    if not response:
        return 0.0
    length_score = min(len(response) / 1000, 1.0)
    lower = response.lower()
    hedging = _count_hits(lower, _HEDGING_WORDS) / len(_HEDGING_WORDS)
    return max(0.0, min(1.0, length_score * (1 - hedging)))


def sentiment_label(score: float) -> str:
    if score > 0:
        return "positive"
    if score < 0:
        return "negative"
    return "neutral"


def summarize(text: str) -> str:
    """Extractive summary: the first third of the sentences."""
    sentences = [s.strip() for s in re.findall(r"[^.!?]+[.!?]+", text)]
    if not sentences:
        return text.strip()
    keep = -(-len(sentences) // 3)
    return " ".join(sentences[:keep])


# ---- Fingerprints ----

def content_fingerprint(messages: Iterable) -> str:
    h = hashlib.sha256()
    for content in _contents(messages):
        h.update(content.encode("utf-8"))
    return h.hexdigest()[:8]


def user_vector(user_id: str, first_name: str = "", now_ms: Optional[int] = None) -> str:
    h = hashlib.sha256()
    h.update(str(user_id).encode("utf-8"))
    h.update(first_name.encode("utf-8"))
    h.update(str(now_ms if now_ms is not None else int(time.time() * 1000)).encode("ascii"))
    return h.hexdigest()[:16]


def content_hash(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def word_count(text: str) -> int:
    return len(text.split(" "))
