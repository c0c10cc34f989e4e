"""
Option Extractor
================
Recovers multiple-choice options from a question body with a tiered
fallback:

    Tier 1: letter-or-number labels "(A)".."(D)" / "(1)".."(4)", scanned
            only up to the first leftover answer/solution marker
    Tier 2: letter labels only, over the whole body
    Tier 3: number labels only, over the whole body

A later tier runs only when every earlier tier found nothing. Source
papers mix lettered and numbered options, so a single strict pattern
misses many real documents.
"""

from __future__ import annotations

import re

from .models import Option
from .notation import render_latex, to_html

STOP_PATTERNS = [
    re.compile(r"Ans\.\s*\(", re.IGNORECASE),
    re.compile(r"Answer:\s*", re.IGNORECASE),
    re.compile(r"Sol\.\s*", re.IGNORECASE),
    re.compile(r"Solution:\s*", re.IGNORECASE),
]

COMBINED_PATTERN = re.compile(r"\(([A-D1-4])\)\s*([^(]*?)(?=\([A-D1-4]\)|$)")
LETTER_PATTERN = re.compile(r"\(([A-D])\)\s*([^(]*?)(?=\([A-D]\)|$)")
NUMBER_PATTERN = re.compile(r"\(([1-4])\)\s*([^(]*?)(?=\([1-4]\)|$)")

# A capture that itself starts with a label, e.g. "B) ..."
MALFORMED_CAPTURE = re.compile(r"^[A-D1-4]\)")


def stop_index(body: str) -> int:
    """Offset of the earliest answer/solution marker, or len(body)."""
    index = len(body)
    for pattern in STOP_PATTERNS:
        match = pattern.search(body)
        if match and match.start() < index:
            index = match.start()
    return index


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _scan(text: str, pattern: re.Pattern, min_length: int) -> list[tuple[str, str]]:
    found: list[tuple[str, str]] = []
    for match in pattern.finditer(text):
        content = _normalize(match.group(2))
        if len(content) < min_length or MALFORMED_CAPTURE.match(content):
            continue
        found.append((match.group(1), content))
    return found


def _sort_key(option: Option) -> tuple[int, int, str]:
    if option.label.isdigit():
        return (0, int(option.label), "")
    return (1, 0, option.label)


def sort_options(options: list[Option]) -> list[Option]:
    """Numbers numerically, letters lexicographically, numbers first."""
    return sorted(options, key=_sort_key)


def has_mixed_labels(options: list[Option]) -> bool:
    kinds = {option.label.isdigit() for option in options}
    return len(kinds) > 1


def extract_options(body: str, min_length: int = 1) -> list[Option]:
    """
    Extract the options of one question body.

    Args:
        body: Question text with answers already stripped.
        min_length: Shortest option text accepted, after whitespace
            normalization.

    Returns:
        Options unique by label, in sort order.
    """
    captures = _scan(body[:stop_index(body)], COMBINED_PATTERN, min_length)
    if not captures:
        captures = _scan(body, LETTER_PATTERN, min_length)
    if not captures:
        captures = _scan(body, NUMBER_PATTERN, min_length)

    options: dict[str, Option] = {}
    for label, text in captures:
        if label in options:
            continue
        options[label] = Option(
            label=label,
            text=text,
            formatted_text=to_html(text),
            latex_text=render_latex(text),
        )
    return sort_options(list(options.values()))
