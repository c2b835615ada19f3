from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any, cast

from openai import AsyncOpenAI

from support_agent.application.ports.llm_port import ChatMessage, LLMPort
from support_agent.domain.errors import ConfigurationError, LLMError


@dataclass
class OpenAIChatAdapter(LLMPort):
    """OpenAI-compatible chat completions (OpenAI, vLLM, any /v1 gateway)."""

    api_key: str
    model: str = "gpt-4o-mini"
    base_url: str | None = None  # e.g. "http://localhost:8000/v1" for vLLM
    temperature: float = 0.0
    max_tokens: int = 1024
    _client: Any | None = field(default=None, init=False, repr=False)

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("LLM_API_KEY not configured")

    def _get_client(self) -> Any:
        self.ensure_configured()
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url or None)
        return self._client

    @staticmethod
    def _payload(messages: Sequence[ChatMessage]) -> Any:
        return cast(Any, [{"role": m.role, "content": m.content} for m in messages])

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        client = self._get_client()
        try:
            resp: Any = await client.chat.completions.create(
                model=self.model,
                messages=self._payload(messages),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            return resp.choices[0].message.content or ""
        except Exception as ex:  # noqa: BLE001
            # Translate external errors to domain-specific errors
            raise LLMError(f"LLM communication failed: {ex}") from ex

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        client = self._get_client()
        try:
            stream: Any = await client.chat.completions.create(
                model=self.model,
                messages=self._payload(messages),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
        except Exception as ex:  # noqa: BLE001
            raise LLMError(f"LLM communication failed: {ex}") from ex

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except Exception as ex:  # noqa: BLE001
            raise LLMError(f"LLM stream interrupted: {ex}") from ex
        finally:
            await stream.close()
