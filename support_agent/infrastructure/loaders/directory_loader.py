from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from support_agent.application.ports.document_loader_port import DocumentLoaderPort, DocumentPayload
from support_agent.domain.errors import DocumentError

TEXT_SUFFIXES = (".md", ".txt")
PDF_SUFFIXES = (".pdf",)


def read_text_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except Exception as ex:  # noqa: BLE001
        raise DocumentError(f"Text load failed for {path}: {ex}") from ex


def read_pdf_file(path: Path) -> str:
    from pypdf import PdfReader  # lazy import: only needed when the corpus holds PDFs

    try:
        reader = PdfReader(str(path))
        pages = [p.extract_text() or "" for p in reader.pages]
        return "\n\n".join(pages).strip()
    except Exception as ex:  # noqa: BLE001
        raise DocumentError(f"PDF parse failed for {path}: {ex}") from ex


@dataclass
class DirectoryLoaderAdapter(DocumentLoaderPort):
    """
    Recursively loads every supported file under a corpus root.

    Provenance: source_id is the file name without extension, category is the
    name of the directory that contains the file. Files are visited in sorted
    path order so index insertion order is reproducible.
    """

    include_pdf: bool = True

    def _suffixes(self) -> tuple[str, ...]:
        return TEXT_SUFFIXES + (PDF_SUFFIXES if self.include_pdf else ())

    def load_corpus(self, root: str) -> list[DocumentPayload]:
        base = Path(root)
        if not base.is_dir():
            return []
        suffixes = self._suffixes()
        docs: list[DocumentPayload] = []
        for path in sorted(p for p in base.rglob("*") if p.is_file()):
            suffix = path.suffix.lower()
            if suffix not in suffixes:
                continue
            text = read_pdf_file(path) if suffix in PDF_SUFFIXES else read_text_file(path)
            if not text:
                continue
            docs.append(
                DocumentPayload(
                    text=text,
                    source_id=path.stem,
                    category=path.parent.name,
                    source_path=str(path),
                )
            )
        return docs
