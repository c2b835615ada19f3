"""Tests for the Retriever use case."""

from collections.abc import Sequence

import pytest

from support_agent.application.ports.document_loader_port import DocumentPayload
from support_agent.application.use_cases.build_index import DocumentIndexer
from support_agent.application.use_cases.retrieve_context import Retriever
from support_agent.domain.errors import (
    NotInitializedError,
    RetrievalError,
    ValidationError,
    VectorIndexError,
)
from support_agent.domain.models import IndexEntry, ScoredChunk
from support_agent.domain.services.context import NO_CONTEXT

VOCAB = ("cashback", "loan", "travel", "fee")


def keyword_vector(text: str) -> list[float]:
    low = text.lower()
    return [float(low.count(w)) for w in VOCAB]


class KeywordEmbedding:
    """Bag-of-keywords vectors: enough to make similarity meaningful."""

    def __init__(self, fail_queries: bool = False) -> None:
        self.fail_queries = fail_queries

    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return [keyword_vector(t) for t in texts]

    async def embed_query(self, text: str) -> list[float]:
        if self.fail_queries:
            raise RuntimeError("embedding service down")
        return keyword_vector(text)


class DotIndex:
    """Dot-product index with stable ordering for equal scores."""

    def __init__(self) -> None:
        self.entries: list[IndexEntry] = []
        self.fail = False

    def add(self, entries: Sequence[IndexEntry]) -> None:
        self.entries.extend(entries)

    def search(self, query_vector: Sequence[float], top_k: int) -> list[ScoredChunk]:
        if self.fail:
            raise VectorIndexError("dimension mismatch")
        scored = [
            ScoredChunk(chunk=e.chunk, score=sum(a * b for a, b in zip(e.embedding, query_vector)))
            for e in self.entries
        ]
        return sorted(scored, key=lambda s: -s.score)[:top_k]

    def __len__(self) -> int:
        return len(self.entries)


class StaticLoader:
    def __init__(self, docs: list[DocumentPayload]) -> None:
        self.docs = docs

    def load_corpus(self, root: str) -> list[DocumentPayload]:
        return self.docs


DOCS = [
    DocumentPayload("QuickCash loan with a 1% processing fee.", "quickcash", "personal-loans"),
    DocumentPayload("CashBack Plus: 5% cashback, no fee in year one.", "cashback-plus", "credit-cards"),
    DocumentPayload("TravelElite: travel perks and lounge access.", "travelelite", "credit-cards"),
]


async def built_retriever(docs=DOCS, embedding=None, default_k: int = 4) -> Retriever:
    embedding = embedding or KeywordEmbedding()
    indexer = DocumentIndexer(StaticLoader(docs), embedding, DotIndex)
    await indexer.build("docs")
    return Retriever(indexer, embedding, default_k=default_k)


class TestRetriever:
    @pytest.mark.asyncio
    async def test_most_similar_chunk_ranks_first(self) -> None:
        retriever = await built_retriever()

        results = await retriever.retrieve("Which card gives cashback?")

        assert results[0].chunk.source_id == "cashback-plus"
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    @pytest.mark.asyncio
    async def test_k_limits_results(self) -> None:
        retriever = await built_retriever()

        assert len(await retriever.retrieve("fee", k=1)) == 1
        assert len(await retriever.retrieve("fee")) == 3

    @pytest.mark.asyncio
    async def test_equal_scores_keep_insertion_order(self) -> None:
        retriever = await built_retriever()

        results = await retriever.retrieve("something unrelated", k=3)

        assert [r.chunk.source_id for r in results] == ["quickcash", "cashback-plus", "travelelite"]

    @pytest.mark.asyncio
    async def test_non_positive_k_is_rejected(self) -> None:
        retriever = await built_retriever()

        with pytest.raises(ValidationError):
            await retriever.retrieve("fee", k=0)

    @pytest.mark.asyncio
    async def test_retrieve_before_build_raises(self) -> None:
        embedding = KeywordEmbedding()
        indexer = DocumentIndexer(StaticLoader(DOCS), embedding, DotIndex)
        retriever = Retriever(indexer, embedding)

        with pytest.raises(NotInitializedError):
            await retriever.retrieve("fee")
        with pytest.raises(NotInitializedError):
            await retriever.get_context("fee")

    @pytest.mark.asyncio
    async def test_empty_index_returns_nothing(self) -> None:
        retriever = await built_retriever(docs=[])

        assert await retriever.retrieve("fee") == []
        assert await retriever.get_context("fee") == NO_CONTEXT

    @pytest.mark.asyncio
    async def test_query_embedding_failure_is_retrieval_error(self) -> None:
        retriever = await built_retriever(embedding=KeywordEmbedding(fail_queries=True))

        with pytest.raises(RetrievalError):
            await retriever.retrieve("fee")
        assert await retriever.get_context("fee") == NO_CONTEXT

    @pytest.mark.asyncio
    async def test_index_failure_is_retrieval_error(self) -> None:
        retriever = await built_retriever()
        retriever.indexer.index.fail = True

        with pytest.raises(RetrievalError):
            await retriever.retrieve("fee")

    @pytest.mark.asyncio
    async def test_get_context_formats_sources(self) -> None:
        retriever = await built_retriever(default_k=1)

        ctx = await retriever.get_context("travel lounge")

        assert ctx.startswith("[Source 1: credit-cards/travelelite]\n")
        assert "lounge access" in ctx
