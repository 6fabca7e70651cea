from openai import AsyncOpenAI

from .base import LLMProvider


class GroqProvider(LLMProvider):
    """Groq chat completions through its OpenAI-compatible endpoint."""

    name = "groq"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.groq.com/openai/v1",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        top_p: float = 0.95,
    ) -> None:
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.defaults = {
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
        }

    async def complete(
        self, messages: list[dict], model: str, **kwargs
    ) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            **{**self.defaults, **kwargs},
        )
        return response.choices[0].message.content or ""

