from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from support_agent.domain.models import DocumentChunk

# ---------- Value Objects ----------


@dataclass(frozen=True)
class ChunkingParams:
    chunk_size: int = 1000
    chunk_overlap: int = 200
    separators: tuple[str, ...] = ("\n\n", "\n", " ", "")

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if not (0 <= self.chunk_overlap < self.chunk_size):
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")


# ---------- Splitting ----------


def _split_on(text: str, separator: str) -> list[str]:
    parts = text.split(separator) if separator else list(text)
    return [p for p in parts if p]


def merge_splits(splits: Sequence[str], separator: str, p: ChunkingParams) -> list[str]:
    """Pack small splits into chunks of at most chunk_size, carrying an overlap tail.

    The tail is made of whole splits from the end of the previous chunk whose
    combined length does not exceed chunk_overlap.
    """
    sep_len = len(separator)
    chunks: list[str] = []
    curr: list[str] = []
    total = 0

    for s in splits:
        s_len = len(s)
        if curr and total + s_len + sep_len > p.chunk_size:
            chunk = separator.join(curr).strip()
            if chunk:
                chunks.append(chunk)
            # Drop from the front until what is left fits the overlap budget
            # and leaves room for the incoming split.
            while total > p.chunk_overlap or (
                total > 0 and total + s_len + (sep_len if curr else 0) > p.chunk_size
            ):
                total -= len(curr[0]) + (sep_len if len(curr) > 1 else 0)
                curr.pop(0)
        curr.append(s)
        total += s_len + (sep_len if len(curr) > 1 else 0)

    if curr:
        chunk = separator.join(curr).strip()
        if chunk:
            chunks.append(chunk)
    return chunks


def split_text(text: str, params: ChunkingParams | None = None) -> list[str]:
    """Recursive character splitting: paragraphs → lines → words → characters."""
    p = params or ChunkingParams()
    return _split_recursive(text, list(p.separators), p)


def _split_recursive(text: str, separators: list[str], p: ChunkingParams) -> list[str]:
    # First separator present in the text wins; "" always matches.
    separator = separators[-1]
    remaining: list[str] = []
    for i, sep in enumerate(separators):
        if sep == "" or sep in text:
            separator = sep
            remaining = separators[i + 1 :]
            break

    out: list[str] = []
    pending: list[str] = []
    for piece in _split_on(text, separator):
        if len(piece) < p.chunk_size:
            pending.append(piece)
            continue
        if pending:
            out.extend(merge_splits(pending, separator, p))
            pending = []
        if remaining:
            out.extend(_split_recursive(piece, remaining, p))
        else:
            out.append(piece)
    if pending:
        out.extend(merge_splits(pending, separator, p))
    return out


def chunk_document(
    text: str,
    source_id: str,
    category_tag: str,
    params: ChunkingParams | None = None,
) -> list[DocumentChunk]:
    """Split one document and attach provenance to every chunk."""
    return [
        DocumentChunk(text=t, source_id=source_id, category_tag=category_tag, chunk_index=i)
        for i, t in enumerate(split_text(text, params))
    ]


# Properties:
#
# - No I/O, no globals, no external NLP libs.
# - Every chunk is at most chunk_size characters unless a single unsplittable
#   piece is longer (only possible with a custom separator list without "").
# - Consecutive chunks share up to chunk_overlap characters of trailing splits.
