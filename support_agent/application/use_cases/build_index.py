# support_agent/application/use_cases/build_index.py
from __future__ import annotations

import asyncio
from collections.abc import Callable

from support_agent.application.dto.index_dto import IndexStats
from support_agent.application.ports.document_loader_port import DocumentLoaderPort
from support_agent.application.ports.embedding_port import EmbeddingPort
from support_agent.application.ports.telemetry_port import NullTelemetry, TelemetryPort
from support_agent.application.ports.vector_index_port import VectorIndexPort
from support_agent.config.logging import get_logger
from support_agent.domain.errors import EmbeddingError, NotInitializedError
from support_agent.domain.models import DocumentChunk, IndexEntry
from support_agent.domain.services.chunking import ChunkingParams, chunk_document

logger = get_logger(__name__)


class DocumentIndexer:
    """
    Builds the process-wide chunk index once and caches it.

    - build() is idempotent: later calls return the cached index without re-embedding.
    - Concurrent first callers are serialized by a lock; one builds, the rest reuse.
    - The cached index is only published after a successful build, so a failed
      build leaves the indexer uninitialized and the next call retries.
    """

    def __init__(
        self,
        loader: DocumentLoaderPort,
        embedding: EmbeddingPort,
        index_factory: Callable[[], VectorIndexPort],
        params: ChunkingParams | None = None,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self.loader = loader
        self.embedding = embedding
        self.index_factory = index_factory
        self.params = params or ChunkingParams()
        self.telemetry = telemetry or NullTelemetry()
        self._index: VectorIndexPort | None = None
        self._document_count = 0
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._index is not None

    @property
    def index(self) -> VectorIndexPort:
        if self._index is None:
            raise NotInitializedError("Vector index not initialized. Call build() first.")
        return self._index

    def stats(self) -> IndexStats:
        if self._index is None:
            return IndexStats(initialized=False)
        return IndexStats(
            initialized=True,
            document_count=self._document_count,
            chunk_count=len(self._index),
        )

    async def build(self, corpus_root: str) -> VectorIndexPort:
        if self._index is not None:
            return self._index
        async with self._lock:
            if self._index is not None:
                return self._index
            logger.info(f"Initializing vector index from {corpus_root}")
            try:
                index, n_docs = await self._build(corpus_root)
            except Exception:
                logger.error("Failed to initialize vector index", exc_info=True)
                raise
            self._index = index
            self._document_count = n_docs
            self.telemetry.observe("index.chunks", float(len(index)))
            logger.info(f"Vector index ready: {n_docs} documents, {len(index)} chunks")
            return index

    async def _build(self, corpus_root: str) -> tuple[VectorIndexPort, int]:
        # 1) Discover + load (blocking file I/O off the event loop)
        docs = await asyncio.to_thread(self.loader.load_corpus, corpus_root)
        index = self.index_factory()
        if not docs:
            logger.warning(f"No documents found in {corpus_root}; serving with an empty index")
            return index, 0

        # 2) Chunk (pure domain)
        chunks: list[DocumentChunk] = []
        for doc in docs:
            chunks.extend(chunk_document(doc.text, doc.source_id, doc.category, self.params))
        if not chunks:
            return index, len(docs)

        # 3) Embed; any failure here is fatal for the build
        try:
            vectors = await self.embedding.embed_texts([c.text for c in chunks])
        except EmbeddingError:
            raise
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingError(f"embedding failed during indexing: {ex}") from ex
        if len(vectors) != len(chunks):
            raise EmbeddingError(f"expected {len(chunks)} embeddings, got {len(vectors)}")

        # 4) Store
        index.add(
            [IndexEntry(chunk=c, embedding=tuple(v)) for c, v in zip(chunks, vectors, strict=True)]
        )
        return index, len(docs)
