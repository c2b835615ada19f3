# support_agent/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

Role = Literal["user", "assistant", "system"]
Vector = tuple[float, ...]


class Intent(str, Enum):
    """Classifier output; governs which response branch executes.

    Declaration order is the match priority for noisy classifier output.
    """

    ESCALATE = "ESCALATE"
    OFF_TOPIC = "OFF_TOPIC"
    ANSWER = "ANSWER"


@dataclass
class Message:
    """
    One conversation turn.

    - id:            opaque identifier
    - role:          "user" | "assistant" | "system"
    - content:       text; grows by concatenation only while an assistant reply streams
    - created_at:    creation timestamp (UTC)
    - is_escalation: set once at creation for assistant replies, None otherwise

    Only `content` changes after creation, and only through `append`.
    """

    role: Role
    content: str
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_escalation: bool | None = None

    def append(self, fragment: str) -> None:
        self.content += fragment


@dataclass(frozen=True)
class DocumentChunk:
    """Immutable span of source text with provenance, owned by the index."""

    text: str
    source_id: str
    category_tag: str
    chunk_index: int


@dataclass(frozen=True)
class IndexEntry:
    chunk: DocumentChunk
    embedding: Vector


@dataclass(frozen=True)
class ScoredChunk:
    """A retrieved chunk with its similarity to the query."""

    chunk: DocumentChunk
    score: float
