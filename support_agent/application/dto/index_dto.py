from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class IndexStats:
    initialized: bool
    document_count: int = 0
    chunk_count: int = 0
