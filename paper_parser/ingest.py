"""
Document Ingestion
==================
Builds RawDocuments from files on disk. Text files are read as-is;
PDFs are read page by page with PyMuPDF (fitz). OCR of scanned images
happens upstream: feed its text output in as a ``.txt`` file with
``source_type=SourceType.IMAGE``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from .models import RawDocument, SourceType

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".txt", ".pdf")


def extract_pdf_text(pdf_path: str) -> str:
    """Concatenate the text layer of every page of a PDF."""
    with fitz.open(pdf_path) as doc:
        pages = [page.get_text("text") for page in doc]
    logger.debug(f"Extracted text from {len(pages)} pages of {pdf_path}")
    return "\n".join(pages)


def load_document(
    path: str,
    source_type: Optional[SourceType] = None,
) -> RawDocument:
    """
    Load one file as a RawDocument.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file type is not supported.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = file_path.suffix.lower()
    if suffix == ".pdf":
        text = extract_pdf_text(str(file_path))
        source_type = source_type or SourceType.PDF
    elif suffix == ".txt":
        text = file_path.read_text(encoding="utf-8", errors="replace")
        source_type = source_type or SourceType.PDF
    else:
        raise ValueError(f"Unsupported file type: {suffix}")

    return RawDocument(text=text, source_type=source_type, source_id=file_path.name)


def find_documents(directory: str) -> list[Path]:
    """All supported files under ``directory``, sorted by path."""
    return sorted(
        p for p in Path(directory).rglob("*")
        if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
    )
