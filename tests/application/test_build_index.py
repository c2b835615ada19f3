"""Tests for the DocumentIndexer use case."""

import asyncio
from collections.abc import Sequence

import pytest

from support_agent.application.ports.document_loader_port import DocumentPayload
from support_agent.application.use_cases.build_index import DocumentIndexer
from support_agent.domain.errors import EmbeddingError, NotInitializedError
from support_agent.domain.models import IndexEntry, ScoredChunk
from support_agent.domain.services.chunking import ChunkingParams


class FakeLoader:
    def __init__(self, docs: list[DocumentPayload]) -> None:
        self.docs = docs
        self.calls = 0

    def load_corpus(self, root: str) -> list[DocumentPayload]:
        self.calls += 1
        return list(self.docs)


class FakeEmbedding:
    def __init__(self, fail: Exception | None = None, drop_one: bool = False) -> None:
        self.fail = fail
        self.drop_one = drop_one
        self.calls = 0

    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail is not None:
            raise self.fail
        vectors = [[float(len(t)), 1.0] for t in texts]
        return vectors[:-1] if self.drop_one else vectors

    async def embed_query(self, text: str) -> list[float]:
        return [float(len(text)), 1.0]


class FakeIndex:
    def __init__(self) -> None:
        self.entries: list[IndexEntry] = []

    def add(self, entries: Sequence[IndexEntry]) -> None:
        self.entries.extend(entries)

    def search(self, query_vector: Sequence[float], top_k: int) -> list[ScoredChunk]:
        return [ScoredChunk(chunk=e.chunk, score=1.0) for e in self.entries[:top_k]]

    def __len__(self) -> int:
        return len(self.entries)


class RecordingTelemetry:
    def __init__(self) -> None:
        self.observed: list[tuple[str, float]] = []

    def incr(self, name, tags=None):
        pass

    def observe(self, name, value, tags=None):
        self.observed.append((name, value))


DOCS = [
    DocumentPayload(text="5% cashback on groceries.", source_id="cashback-plus", category="credit-cards"),
    DocumentPayload(text="Approval in 15 minutes.", source_id="quickcash", category="personal-loans"),
]


def make_indexer(loader=None, embedding=None, telemetry=None) -> DocumentIndexer:
    return DocumentIndexer(
        loader=loader or FakeLoader(DOCS),
        embedding=embedding or FakeEmbedding(),
        index_factory=FakeIndex,
        params=ChunkingParams(chunk_size=100, chunk_overlap=10),
        telemetry=telemetry,
    )


class TestDocumentIndexer:
    def test_index_before_build_raises(self) -> None:
        indexer = make_indexer()

        assert indexer.initialized is False
        assert indexer.stats().initialized is False
        with pytest.raises(NotInitializedError):
            _ = indexer.index

    @pytest.mark.asyncio
    async def test_build_indexes_every_document(self) -> None:
        telemetry = RecordingTelemetry()
        indexer = make_indexer(telemetry=telemetry)

        index = await indexer.build("docs")

        assert len(index) == 2
        stats = indexer.stats()
        assert (stats.initialized, stats.document_count, stats.chunk_count) == (True, 2, 2)
        chunks = [e.chunk for e in index.entries]
        assert [(c.source_id, c.category_tag) for c in chunks] == [
            ("cashback-plus", "credit-cards"),
            ("quickcash", "personal-loans"),
        ]
        assert telemetry.observed == [("index.chunks", 2.0)]

    @pytest.mark.asyncio
    async def test_second_build_reuses_index_without_reembedding(self) -> None:
        embedding = FakeEmbedding()
        indexer = make_indexer(embedding=embedding)

        first = await indexer.build("docs")
        second = await indexer.build("docs")

        assert first is second
        assert embedding.calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_first_builds_share_one_build(self) -> None:
        loader = FakeLoader(DOCS)
        embedding = FakeEmbedding()
        indexer = make_indexer(loader=loader, embedding=embedding)

        results = await asyncio.gather(*(indexer.build("docs") for _ in range(5)))

        assert all(r is results[0] for r in results)
        assert loader.calls == 1
        assert embedding.calls == 1

    @pytest.mark.asyncio
    async def test_empty_corpus_yields_empty_index(self) -> None:
        indexer = make_indexer(loader=FakeLoader([]))

        index = await indexer.build("nowhere")

        assert len(index) == 0
        assert indexer.initialized is True
        assert indexer.stats().document_count == 0

    @pytest.mark.asyncio
    async def test_embedding_failure_leaves_indexer_uninitialized(self) -> None:
        embedding = FakeEmbedding(fail=EmbeddingError("model unavailable"))
        indexer = make_indexer(embedding=embedding)

        with pytest.raises(EmbeddingError):
            await indexer.build("docs")
        assert indexer.initialized is False

        # A later call retries once the capability recovers.
        embedding.fail = None
        index = await indexer.build("docs")
        assert len(index) == 2

    @pytest.mark.asyncio
    async def test_unexpected_embedding_failure_is_translated(self) -> None:
        indexer = make_indexer(embedding=FakeEmbedding(fail=RuntimeError("connection reset")))

        with pytest.raises(EmbeddingError, match="connection reset"):
            await indexer.build("docs")

    @pytest.mark.asyncio
    async def test_vector_count_mismatch_is_an_embedding_error(self) -> None:
        indexer = make_indexer(embedding=FakeEmbedding(drop_one=True))

        with pytest.raises(EmbeddingError, match="expected 2 embeddings"):
            await indexer.build("docs")
