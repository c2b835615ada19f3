"""Composition root: environment-driven wiring of adapters into use cases.

Why: Single place that picks concrete adapters; application/domain stay pure.
"""

from __future__ import annotations

from support_agent.application.ports.embedding_port import EmbeddingPort
from support_agent.application.ports.llm_port import LLMPort
from support_agent.application.ports.telemetry_port import NullTelemetry, TelemetryPort
from support_agent.application.use_cases.build_index import DocumentIndexer
from support_agent.application.use_cases.classify_intent import IntentClassifier
from support_agent.application.use_cases.generate_response import PacingParams, ResponseGenerator
from support_agent.application.use_cases.retrieve_context import Retriever
from support_agent.application.use_cases.stream_chat import ChatStreamFramer
from support_agent.config.settings import AppSettings
from support_agent.domain.services.chunking import ChunkingParams
from support_agent.infrastructure.embeddings.openai_embeddings_adapter import OpenAIEmbeddingAdapter
from support_agent.infrastructure.embeddings.sentence_transformers_adapter import (
    SentenceTransformersEmbeddingAdapter,
)
from support_agent.infrastructure.llm.openai_chat_adapter import OpenAIChatAdapter
from support_agent.infrastructure.loaders.directory_loader import DirectoryLoaderAdapter
from support_agent.infrastructure.vectorstore.memory_vector_index import InMemoryVectorIndex


def build_embedding(settings: AppSettings) -> EmbeddingPort:
    if settings.embedding_backend == "openai":
        return OpenAIEmbeddingAdapter(
            api_key=settings.llm_api_key,
            model=settings.openai_embedding_model,
            base_url=settings.llm_base_url or None,
        )
    return SentenceTransformersEmbeddingAdapter(
        model_name=settings.embedding_model,
        device=settings.embedding_device,
    )


def build_llm(settings: AppSettings) -> OpenAIChatAdapter:
    return OpenAIChatAdapter(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url or None,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )


def build_telemetry(settings: AppSettings) -> TelemetryPort:
    """OpenTelemetry when enabled, otherwise a no-op sink."""
    if not settings.telemetry_enabled:
        return NullTelemetry()
    from support_agent.infrastructure.telemetry.otel_adapter import OpenTelemetryAdapter, OtelConfig

    return OpenTelemetryAdapter(OtelConfig(otlp_endpoint=settings.otlp_endpoint or None))


class Container:
    """Process-scoped dependency container.

    Adapters and the DocumentIndexer are created once and cached, so every
    request served by this process shares one index. Tests pass their own
    fakes through the constructor.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        llm: LLMPort | None = None,
        embedding: EmbeddingPort | None = None,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self.settings = settings or AppSettings()
        self._llm = llm
        self._embedding = embedding
        self._telemetry = telemetry
        self._indexer: DocumentIndexer | None = None
        self._framer: ChatStreamFramer | None = None

    # ===== Adapters =====

    def get_llm(self) -> LLMPort:
        if self._llm is None:
            self._llm = build_llm(self.settings)
        return self._llm

    def get_embedding(self) -> EmbeddingPort:
        if self._embedding is None:
            self._embedding = build_embedding(self.settings)
        return self._embedding

    def get_telemetry(self) -> TelemetryPort:
        if self._telemetry is None:
            self._telemetry = build_telemetry(self.settings)
        return self._telemetry

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when the generation capability lacks credentials."""
        check = getattr(self.get_llm(), "ensure_configured", None)
        if check is not None:
            check()

    # ===== Use Cases =====

    def get_indexer(self) -> DocumentIndexer:
        if self._indexer is None:
            self._indexer = DocumentIndexer(
                loader=DirectoryLoaderAdapter(),
                embedding=self.get_embedding(),
                index_factory=InMemoryVectorIndex,
                params=ChunkingParams(
                    chunk_size=self.settings.chunk_size,
                    chunk_overlap=self.settings.chunk_overlap,
                ),
                telemetry=self.get_telemetry(),
            )
        return self._indexer

    def get_retriever(self) -> Retriever:
        return Retriever(
            indexer=self.get_indexer(),
            embedding=self.get_embedding(),
            default_k=self.settings.retrieval_top_k,
        )

    def get_framer(self) -> ChatStreamFramer:
        if self._framer is None:
            llm = self.get_llm()
            generator = ResponseGenerator(
                llm=llm,
                classifier=IntentClassifier(llm),
                retriever=self.get_retriever(),
                pacing=PacingParams(
                    slice_size=self.settings.canned_slice_size,
                    delay_s=self.settings.canned_delay_s,
                ),
                telemetry=self.get_telemetry(),
            )
            self._framer = ChatStreamFramer(generator, telemetry=self.get_telemetry())
        return self._framer

    async def warm_up(self) -> None:
        """Build the shared index; raises if the embedding capability is unreachable."""
        await self.get_indexer().build(self.settings.corpus_dir)
