"""Domain errors (typed) for the support pipeline.

Why: One error family for Application and Interface layers, without Infra leaks.
"""


class DomainError(Exception):
    """Base class for domain-specific errors."""


class ValidationError(DomainError):
    """Invalid or missing request input."""


class ConfigurationError(DomainError):
    """Required capability credentials or settings are missing."""


class CapabilityError(DomainError):
    """An external model capability (generation/embedding) failed."""


class LLMError(CapabilityError):
    """LLM backend failed or is misconfigured."""


class EmbeddingError(CapabilityError):
    """Embedding backend failed or is misconfigured."""


class RetrievalError(DomainError):
    """Retrieval failure (after infra errors were mapped)."""


class NotInitializedError(DomainError):
    """Retrieval was attempted before the index was ever built."""


class DocumentError(DomainError):
    """Document loading/parsing failed."""


class TransportError(DomainError):
    """Writing to the output sink failed after streaming started."""


class ProtocolError(DomainError):
    """Malformed frame or explicit error event on the client side."""

    def __init__(self, message: str, frame: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.frame = frame


class VectorIndexError(DomainError):
    """Vector index rejected an entry or query (e.g. dimensionality mismatch)."""
