import asyncio
import logging
from typing import Any, Sequence

from openai import AsyncOpenAI

from core.config import Settings

logger = logging.getLogger("app.services.llm_service")


class LLMUnavailableError(RuntimeError):
    pass


class ChatCompletionService:
    """Single-shot chat completions against an OpenAI-compatible endpoint.

    No retries here: callers decide whether a failure is fatal or masked by a fallback.
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        model: str = "llama-3.3-70b-versatile",
        default_timeout_sec: float = 20.0,
        client: Any = None,
    ):
        self.api_key = str(api_key or "").strip()
        self.base_url = str(base_url or "").strip() or None
        self.model = str(model or "").strip()
        self.default_timeout_sec = float(default_timeout_sec)
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatCompletionService":
        return cls(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.model_name,
            default_timeout_sec=settings.llm_timeout_sec,
        )

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMUnavailableError("LLM_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def complete(
        self,
        messages: Sequence[dict],
        *,
        temperature: float = 0.7,
        max_tokens: int = 200,
        timeout_sec: float | None = None,
    ) -> str:
        payload = [
            {"role": str(item.get("role") or "user"), "content": str(item.get("content") or "")}
            for item in messages
        ]
        timeout = float(timeout_sec or self.default_timeout_sec)
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=payload,
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("chat completion timeout | model=%s timeout=%.1fs", self.model, timeout)
            raise

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return str(getattr(message, "content", "") or "").strip()
