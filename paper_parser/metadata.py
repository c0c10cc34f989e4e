"""
Metadata Extractor
==================
Derives paper-level metadata (year, session, shift, subject, date,
paper type) from document text and from the source filename.

Each field has its own ordered list of candidate patterns; the first
pattern that matches wins. Content-derived values override filename
values field by field (see ``DocumentMetadata.merge``).
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import DocumentMetadata

logger = logging.getLogger(__name__)

YEAR_RANGE = (2000, 2030)

# ─── Content Patterns ─────────────────────────────────────────────────────────

YEAR_PATTERNS = [
    re.compile(r"JEE-MAIN EXAMINATION - JANUARY (\d{4})", re.IGNORECASE),
    re.compile(r"JEE-Main Exam Session-[12] \(January (\d{4})\)", re.IGNORECASE),
    re.compile(r"HELD ON.*?(\d{4})", re.IGNORECASE),
    re.compile(r"(\d{4})/\d{2}-\d{2}-\d{4}"),     # 2025/22-01-2025
    re.compile(r"January (\d{4})", re.IGNORECASE),
    re.compile(r"(\d{4})"),
]

SESSION_MARKER = re.compile(r"Session[\s-]?[12]\b", re.IGNORECASE)
SESSION_ONE = re.compile(r"Session[\s-]?1\b", re.IGNORECASE)

SHIFT_PATTERNS = [
    (re.compile(r"Morning", re.IGNORECASE), "Morning"),
    (re.compile(r"Evening", re.IGNORECASE), "Evening"),
]

SUBJECT_PATTERNS = [
    (re.compile(r"Mathematics", re.IGNORECASE), "Mathematics"),
    (re.compile(r"Physics", re.IGNORECASE), "Physics"),
    (re.compile(r"Chemistry", re.IGNORECASE), "Chemistry"),
]

DATE_PATTERNS = [
    re.compile(r"(\d{2}-\d{2}-\d{4})"),                               # 22-01-2025
    re.compile(r"(\d{2}/\d{2}/\d{4})"),                               # 22/01/2025
    re.compile(r"(\d{1,2}(?:st|nd|rd|th) [A-Za-z]+ \d{4})", re.IGNORECASE),
]

SOLUTION_PATTERN = re.compile(r"solution", re.IGNORECASE)

# Every 4-digit window, so compact dates like 20250122 still yield a year
FILENAME_YEAR = re.compile(r"(?=(\d{4}))")


def _valid_year(value: str) -> Optional[int]:
    year = int(value)
    if YEAR_RANGE[0] <= year <= YEAR_RANGE[1]:
        return year
    return None


def _first_labelled(text: str, patterns) -> Optional[str]:
    for pattern, label in patterns:
        if pattern.search(text):
            return label
    return None


# ─── Content ──────────────────────────────────────────────────────────────────


def extract_year(text: str) -> Optional[int]:
    for pattern in YEAR_PATTERNS:
        for match in pattern.finditer(text):
            year = _valid_year(match.group(1))
            if year is not None:
                return year
    return None


def extract_session(text: str) -> Optional[str]:
    if not SESSION_MARKER.search(text):
        return None
    return "Session1" if SESSION_ONE.search(text) else "Session2"


def extract_date(text: str) -> Optional[str]:
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def from_content(text: str) -> DocumentMetadata:
    """Metadata found in the document text. Paper type is always set."""
    return DocumentMetadata(
        year=extract_year(text),
        session=extract_session(text),
        shift=_first_labelled(text, SHIFT_PATTERNS),
        subject=_first_labelled(text, SUBJECT_PATTERNS),
        date=extract_date(text),
        paper_type=(
            "With Solution" if SOLUTION_PATTERN.search(text) else "Question Paper"
        ),
    )


# ─── Filename ─────────────────────────────────────────────────────────────────


def from_filename(name: str) -> DocumentMetadata:
    """
    Metadata implied by a filename such as
    ``2201-Mathematics Paper+With+Sol. Evening.pdf``.
    """
    lowered = name.lower()

    year = None
    for match in FILENAME_YEAR.finditer(name):
        year = _valid_year(match.group(1))
        if year is not None:
            break

    subject = "Unknown"
    if "mathematics" in lowered or "math" in lowered:
        subject = "Mathematics"
    elif "physics" in lowered:
        subject = "Physics"
    elif "chemistry" in lowered:
        subject = "Chemistry"

    session = None
    if "session1" in lowered:
        session = "Session1"
    elif "session2" in lowered:
        session = "Session2"

    shift = None
    if "morning" in lowered:
        shift = "Morning"
    elif "evening" in lowered:
        shift = "Evening"

    paper_type = (
        "With Solution"
        if "solution" in lowered or "sol" in lowered
        else "Question Paper"
    )

    return DocumentMetadata(
        year=year,
        session=session,
        shift=shift,
        subject=subject,
        paper_type=paper_type,
    )


def resolve_metadata(source_id: str, text: str) -> DocumentMetadata:
    """Filename metadata overridden by whatever the content provides."""
    filename_meta = from_filename(source_id)
    content_meta = from_content(text)
    merged = filename_meta.merge(content_meta)
    logger.debug(f"Metadata for {source_id}: {merged.model_dump()}")
    return merged
