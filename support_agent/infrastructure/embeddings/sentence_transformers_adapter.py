from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from support_agent.application.ports.embedding_port import EmbeddingPort
from support_agent.domain.errors import EmbeddingError


@dataclass
class SentenceTransformersEmbeddingAdapter(EmbeddingPort):
    """Local Sentence-Transformers embeddings; the model loads on first use."""

    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    device: str = "cpu"  # "cuda" when available
    local_files_only: bool = False  # offline deployments
    _model: Any | None = field(default=None, init=False, repr=False)

    def _ensure_model(self) -> Any:
        if self._model is not None:
            return self._model
        try:
            from sentence_transformers import SentenceTransformer  # heavy import, deferred

            self._model = SentenceTransformer(
                self.model_name,
                device=self.device,
                local_files_only=self.local_files_only,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingError(
                f"Failed to load embedding model '{self.model_name}': {ex}"
            ) from ex
        return self._model

    def _encode(self, inputs: str | list[str]) -> Any:
        model = self._ensure_model()
        try:
            return model.encode(
                inputs,
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingError(f"Embedding failed: {ex}") from ex

    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        raw_vectors = await asyncio.to_thread(self._encode, list(texts))
        return [[float(x) for x in vec] for vec in raw_vectors]

    async def embed_query(self, text: str) -> list[float]:
        raw_vector = await asyncio.to_thread(self._encode, text)
        return [float(x) for x in raw_vector]
