"""Application settings with environment-driven configuration.

Why: Single place that reads the environment; every other layer receives
     settings via dependency injection.
"""

import os
from dataclasses import dataclass, field

_DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173,http://localhost:5174"


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    This is the ONLY place where environment variables are read.
    Chunking, retrieval and canned-reply pacing are configuration constants:
    they never depend on the query being served.
    """

    # ===== Corpus / Indexing =====
    corpus_dir: str = field(default_factory=lambda: os.getenv("CORPUS_DIR", "docs"))
    chunk_size: int = field(default_factory=lambda: int(os.getenv("CHUNK_SIZE", "1000")))
    chunk_overlap: int = field(default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "200")))
    retrieval_top_k: int = field(default_factory=lambda: int(os.getenv("RETRIEVAL_TOP_K", "4")))

    # ===== Embedding Configuration =====
    embedding_backend: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_BACKEND", "sentence-transformers").lower()
    )
    # Supported: "sentence-transformers" | "openai"

    embedding_model: str = field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
        )
    )
    embedding_device: str = field(default_factory=lambda: os.getenv("EMBEDDING_DEVICE", "cpu"))
    # Supported: "cpu" | "cuda" | "mps"

    openai_embedding_model: str = field(
        default_factory=lambda: os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    )

    # ===== LLM Configuration =====
    llm_base_url: str = field(default_factory=lambda: os.getenv("LLM_BASE_URL", ""))
    # Empty = provider default; set e.g. "http://localhost:8000/v1" for vLLM

    llm_api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY", ""))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))
    llm_temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.0"))
    )
    llm_max_tokens: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "1024")))

    # ===== Canned replies =====
    canned_slice_size: int = field(
        default_factory=lambda: int(os.getenv("CANNED_SLICE_SIZE", "15"))
    )
    canned_delay_s: float = field(
        default_factory=lambda: float(os.getenv("CANNED_DELAY_S", "0.03"))
    )

    # ===== HTTP Server =====
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3001")))
    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS))
    )
    client_url: str = field(default_factory=lambda: os.getenv("CLIENT_URL", ""))

    # ===== Logging / Telemetry =====
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    telemetry_enabled: bool = field(
        default_factory=lambda: os.getenv("TELEMETRY_ENABLED", "false").lower() == "true"
    )
    otlp_endpoint: str = field(default_factory=lambda: os.getenv("OTLP_ENDPOINT", ""))
    # Empty string = no OTLP export

    def allowed_origins(self) -> list[str]:
        origins = list(self.cors_origins)
        if self.client_url and self.client_url not in origins:
            origins.insert(0, self.client_url)
        return origins
