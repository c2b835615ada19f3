from __future__ import annotations

from collections.abc import Sequence

from support_agent.domain.models import ScoredChunk

NO_CONTEXT = "No relevant information found in the knowledge base."
CONTEXT_SEPARATOR = "\n\n---\n\n"


def format_source(index: int, result: ScoredChunk) -> str:
    category = result.chunk.category_tag or "general"
    name = result.chunk.source_id or "unknown"
    return f"[Source {index}: {category}/{name}]\n{result.chunk.text}"


def format_context(results: Sequence[ScoredChunk]) -> str:
    """Render retrieved chunks as provenance-tagged blocks (1-based source numbers)."""
    if not results:
        return NO_CONTEXT
    return CONTEXT_SEPARATOR.join(format_source(i, r) for i, r in enumerate(results, start=1))
