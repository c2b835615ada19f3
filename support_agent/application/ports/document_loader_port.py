from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DocumentPayload:
    text: str
    source_id: str  # file name without extension
    category: str  # name of the containing directory
    source_path: str | None = None


class DocumentLoaderPort(Protocol):
    def load_corpus(self, root: str) -> list[DocumentPayload]:
        """Recursively discover and read every supported document under root."""
        ...
