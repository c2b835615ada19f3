"""Application ports package.

Re-exports the ports so use cases and adapters can import them from one place.
"""

from support_agent.application.ports.byte_sink_port import ByteSinkPort
from support_agent.application.ports.document_loader_port import DocumentLoaderPort, DocumentPayload
from support_agent.application.ports.embedding_port import EmbeddingPort
from support_agent.application.ports.llm_port import ChatMessage, LLMPort
from support_agent.application.ports.telemetry_port import NullTelemetry, TelemetryPort
from support_agent.application.ports.vector_index_port import VectorIndexPort

__all__ = [
    "ByteSinkPort",
    "ChatMessage",
    "DocumentLoaderPort",
    "DocumentPayload",
    "EmbeddingPort",
    "LLMPort",
    "NullTelemetry",
    "TelemetryPort",
    "VectorIndexPort",
]
