from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from support_agent.domain.models import IndexEntry, ScoredChunk


@runtime_checkable
class VectorIndexPort(Protocol):
    """In-memory (chunk, embedding) store; read-only once populated."""

    def add(self, entries: Sequence[IndexEntry]) -> None: ...

    def search(self, query_vector: Sequence[float], top_k: int) -> list[ScoredChunk]:
        """Top-k by similarity, descending; ties keep insertion order."""
        ...

    def __len__(self) -> int: ...
