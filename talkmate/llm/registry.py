from typing import Optional

from ..config import get_config
from .base import LLMProvider
from .catalog import DEFAULT_MODEL, get_model
from .groq_provider import GroqProvider

_provider: Optional[LLMProvider] = None


def get_provider() -> Optional[LLMProvider]:
    """Cached Groq provider, or None while no API key is configured."""
    global _provider
    if _provider is None:
        groq = get_config().groq
        if not groq.api_key:
            return None
        _provider = GroqProvider(
            api_key=groq.api_key,
            base_url=groq.base_url,
            temperature=groq.temperature,
            max_tokens=groq.max_tokens,
            top_p=groq.top_p,
        )
    return _provider


def resolve_model(model: str, default: Optional[str] = None) -> str:
    """The user's model if it is in the catalog, else the configured default."""
    if model and get_model(model):
        return model
    if default is None:
        default = get_config().groq.default_model
    if default and get_model(default):
        return default
    return DEFAULT_MODEL

