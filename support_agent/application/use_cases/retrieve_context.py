# support_agent/application/use_cases/retrieve_context.py
from __future__ import annotations

from support_agent.application.ports.embedding_port import EmbeddingPort
from support_agent.application.use_cases.build_index import DocumentIndexer
from support_agent.config.logging import get_logger
from support_agent.domain.errors import DomainError, RetrievalError, ValidationError
from support_agent.domain.models import ScoredChunk
from support_agent.domain.services.context import NO_CONTEXT, format_context

logger = get_logger(__name__)

DEFAULT_TOP_K = 4


class Retriever:
    """
    Embeds a query and returns the top-k most similar indexed chunks.

    retrieve() before the index was ever built raises NotInitializedError;
    an empty index yields an empty list.
    """

    def __init__(
        self,
        indexer: DocumentIndexer,
        embedding: EmbeddingPort,
        default_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.indexer = indexer
        self.embedding = embedding
        self.default_k = default_k

    async def retrieve(self, query: str, k: int | None = None) -> list[ScoredChunk]:
        top_k = self.default_k if k is None else k
        if top_k <= 0:
            raise ValidationError("k must be > 0")
        index = self.indexer.index  # raises NotInitializedError
        if len(index) == 0:
            return []

        try:
            q_vec = await self.embedding.embed_query(query)
        except Exception as ex:  # noqa: BLE001
            raise RetrievalError(f"query embedding failed: {ex}") from ex

        try:
            return index.search(q_vec, top_k)
        except DomainError as ex:
            raise RetrievalError(f"vector search failed: {ex}") from ex

    async def get_context(self, query: str, k: int | None = None) -> str:
        """Formatted context block; retrieval failures degrade to the no-context sentinel."""
        try:
            results = await self.retrieve(query, k)
        except RetrievalError:
            logger.warning("Retrieval failed; answering without context", exc_info=True)
            return NO_CONTEXT
        return format_context(results)
