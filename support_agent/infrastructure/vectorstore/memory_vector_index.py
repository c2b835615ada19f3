from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from support_agent.application.ports.vector_index_port import VectorIndexPort
from support_agent.domain.errors import VectorIndexError
from support_agent.domain.models import DocumentChunk, IndexEntry, ScoredChunk


def _normalize_rows(arr: Any) -> Any:
    norms = np.linalg.norm(arr, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return arr / norms


@dataclass
class InMemoryVectorIndex(VectorIndexPort):
    """Exact cosine search over a dense float32 matrix (one row per chunk).

    Rows are L2-normalized on insert, so inner product equals cosine.
    Ranking uses a stable sort: equal scores keep insertion order.
    """

    chunks: list[DocumentChunk] = field(default_factory=list, init=False)
    matrix: Any | None = field(default=None, init=False)

    @property
    def dim(self) -> int | None:
        return None if self.matrix is None else int(self.matrix.shape[1])

    def add(self, entries: Sequence[IndexEntry]) -> None:
        if not entries:
            return
        try:
            arr = np.asarray([e.embedding for e in entries], dtype=np.float32)
        except ValueError as ex:
            raise VectorIndexError(f"embeddings have inconsistent dimensionality: {ex}") from ex
        if arr.ndim != 2 or arr.shape[1] == 0:
            raise VectorIndexError("embeddings must be non-empty vectors")
        if self.dim is not None and arr.shape[1] != self.dim:
            raise VectorIndexError(f"expected dimension {self.dim}, got {arr.shape[1]}")

        arr = _normalize_rows(arr)
        self.matrix = arr if self.matrix is None else np.vstack([self.matrix, arr])
        self.chunks.extend(e.chunk for e in entries)

    def search(self, query_vector: Sequence[float], top_k: int) -> list[ScoredChunk]:
        if self.matrix is None or top_k <= 0:
            return []
        q = np.asarray(query_vector, dtype=np.float32)
        if q.ndim != 1 or q.shape[0] != self.dim:
            raise VectorIndexError(
                f"query dimension {q.shape[-1] if q.ndim else 0} does not match index dimension {self.dim}"
            )
        q_norm = float(np.linalg.norm(q)) or 1.0
        scores = self.matrix @ (q / q_norm)
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [ScoredChunk(chunk=self.chunks[int(i)], score=float(scores[int(i)])) for i in order]

    def __len__(self) -> int:
        return len(self.chunks)
