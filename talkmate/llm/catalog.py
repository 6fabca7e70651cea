"""Groq models offered to users through /models and /model."""

from typing import Optional

from pydantic import BaseModel


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: str
    context: str
    tier: str
    best_for: str
    description: str


MODELS: list[ModelInfo] = [
    ModelInfo(
        id="llama-3.3-70b-versatile",
        name="Llama 3.3 70B",
        provider="Meta",
        context="128K",
        tier="Premium",
        best_for="Complex reasoning, coding, analysis",
        description="Most powerful model for complex tasks",
    ),
    ModelInfo(
        id="llama-3.1-70b-versatile",
        name="Llama 3.1 70B",
        provider="Meta",
        context="128K",
        tier="Standard",
        best_for="General conversations, creative writing",
        description="Excellent all-rounder with great balance",
    ),
    ModelInfo(
        id="mixtral-8x7b-32768",
        name="Mixtral 8x7B",
        provider="Mistral",
        context="32K",
        tier="Economy",
        best_for="Fast responses, quick queries",
        description="Fast and efficient for everyday tasks",
    ),
    ModelInfo(
        id="gemma2-9b-it",
        name="Gemma 2 9B",
        provider="Google",
        context="8K",
        tier="Free",
        best_for="Simple queries, translations",
        description="Lightweight and incredibly fast",
    ),
]

DEFAULT_MODEL = MODELS[0].id

_BY_ID = {m.id: m for m in MODELS}


def get_model(model_id: str) -> Optional[ModelInfo]:
    return _BY_ID.get(model_id)
