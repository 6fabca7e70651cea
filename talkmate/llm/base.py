from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Abstract base class for chat-completion providers."""

    name: str

    @abstractmethod
    async def complete(
        self, messages: list[dict], model: str, **kwargs
    ) -> str:
        """Send messages and get a complete response."""
        ...

