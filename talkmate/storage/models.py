import time
from typing import Literal, Optional

from pydantic import BaseModel, Field


def now_ms() -> int:
    return int(time.time() * 1000)


class User(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language: str = "en"
    model: str = ""  # selected Groq model id; empty = config default
    first_seen: int = Field(default_factory=now_ms)
    last_seen: int = Field(default_factory=now_ms)
    message_count: int = 0
    command_count: int = 0
    favorite_count: int = 0
    ticket_count: int = 0
    interaction_score: int = 100
    sentiment_score: float = 0.0
    topics: list[str] = []  # set semantics, kept sorted
    patterns: dict = {}
    vector: str = ""
    temporal_version: int = 1
    metadata: dict = {}

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.username or self.id


class ConversationMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class Conversation(BaseModel):
    id: str
    user_id: str
    messages: list[ConversationMessage] = []
    timestamp: int = Field(default_factory=now_ms)
    vector: str = ""
    sentiment: float = 0.0
    topics: list[str] = []


class FavoriteContext(BaseModel):
    timestamp: int = Field(default_factory=now_ms)
    conversation_id: Optional[str] = None
    model: Optional[str] = None
    topic: Optional[str] = None
    sentiment: Optional[float] = None


class FavoriteMetadata(BaseModel):
    length: int
    word_count: int
    hash: str


class Favorite(BaseModel):
    id: str
    user_id: str
    text: str  # display text, truncated
    full_text: str
    context: FavoriteContext = FavoriteContext()
    metadata: FavoriteMetadata


TicketStatus = Literal["open", "in-progress", "closed"]


class TicketReply(BaseModel):
    id: str
    author: str = "admin"  # "admin" | "user"
    author_id: str = ""
    message: str
    timestamp: int = Field(default_factory=now_ms)


class TicketAnalysis(BaseModel):
    complexity: float
    requires_attention: bool
    suggested_response: str
    estimated_resolution: str


class Ticket(BaseModel):
    id: str
    user_id: str
    user_name: str = ""
    message: str
    status: TicketStatus = "open"
    priority: Literal["urgent", "high", "medium"] = "medium"
    category: Literal["technical", "billing", "feature", "account", "general"] = "general"
    sentiment: int = 0
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    closed_at: Optional[int] = None
    replies: list[TicketReply] = []
    tags: list[str] = []
    ai_analysis: TicketAnalysis


class Prediction(BaseModel):
    predicted_access: float
    confidence: float


class OutboxMessage(BaseModel):
    id: str
    chat_id: str
    text: str
    kind: str = "message"  # "ticket_reply" | "ticket_alert" | "broadcast" | "message"
    created_at: int = Field(default_factory=now_ms)
    delivered: bool = False


class SearchHit(BaseModel):
    type: Literal["favorite", "ticket", "reply"]
    id: str
    ticket_id: Optional[str] = None
    preview: str
    timestamp: int
    status: Optional[str] = None
