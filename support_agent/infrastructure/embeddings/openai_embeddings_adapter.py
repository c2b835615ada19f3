from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from openai import AsyncOpenAI

from support_agent.application.ports.embedding_port import EmbeddingPort
from support_agent.domain.errors import ConfigurationError, EmbeddingError


@dataclass
class OpenAIEmbeddingAdapter(EmbeddingPort):
    """Hosted embeddings through the OpenAI embeddings endpoint."""

    api_key: str
    model: str = "text-embedding-3-small"
    base_url: str | None = None
    batch_size: int = 256
    _client: Any | None = field(default=None, init=False, repr=False)

    def _get_client(self) -> Any:
        if not self.api_key:
            raise ConfigurationError("LLM_API_KEY not configured")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url or None)
        return self._client

    async def _embed(self, inputs: list[str]) -> list[list[float]]:
        client = self._get_client()
        try:
            resp = await client.embeddings.create(model=self.model, input=inputs)
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingError(f"OpenAI embedding request failed: {ex}") from ex
        ordered = sorted(resp.data, key=lambda d: d.index)
        return [list(map(float, d.embedding)) for d in ordered]

    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        out: list[list[float]] = []
        items = list(texts)
        for start in range(0, len(items), self.batch_size):
            out.extend(await self._embed(items[start : start + self.batch_size]))
        return out

    async def embed_query(self, text: str) -> list[float]:
        return (await self._embed([text]))[0]
