"""
Question Segmenter
==================
Slices cleaned document text into per-question spans using question
number anchors ("12. ", "7: "), then drops spans that are headers,
running footers or stray option lists.
"""

from __future__ import annotations

import logging
import re

from .models import QuestionSpan

logger = logging.getLogger(__name__)

# ─── Anchor Patterns ──────────────────────────────────────────────────────────

# "1. ", "23: ", but not "x+2=5. ", "x + 2 = 5. " or "3.5"
ANCHOR_PATTERN = re.compile(r"(?<![\w=+\-*/^])(?<![=+\-*/^] )(\d+)[.:]\s+")

# Exam titles, section banners, time windows, institute branding
HEADER_PATTERNS = [
    re.compile(r"JEE.*EXAMINATION", re.IGNORECASE),
    re.compile(r"TEST PAPER", re.IGNORECASE),
    re.compile(r"SECTION", re.IGNORECASE),
    re.compile(r"TIME.*PM.*TO.*PM", re.IGNORECASE),
    re.compile(r"HELD ON", re.IGNORECASE),
    re.compile(r"ALLEN", re.IGNORECASE),
]

QUESTION_INDICATORS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"find",
        r"calculate",
        r"determine",
        r"choose",
        r"select",
        r"arrange",
        r"identify",
        r"which",
        r"what",
        r"how",
        r"when",
        r"where",
        r"if.*then",
        r"given.*find",
        r"the value of",
        r"the number of",
    )
]

OPTION_ONLY_PATTERN = re.compile(r"^\((?:\d+|[A-D])\)", re.IGNORECASE)


def clean_text(text: str) -> str:
    """Normalize newlines and collapse runs of whitespace."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def is_header(text: str) -> bool:
    return any(p.search(text) for p in HEADER_PATTERNS)


def has_question_cue(text: str) -> bool:
    return any(p.search(text) for p in QUESTION_INDICATORS)


def is_option_only(text: str) -> bool:
    return bool(OPTION_ONLY_PATTERN.match(text.strip()))


class QuestionSegmenter:
    """Anchor-based splitter for cleaned document text."""

    def find_anchors(self, text: str) -> list[re.Match]:
        return list(ANCHOR_PATTERN.finditer(text))

    def candidate_spans(self, text: str) -> list[QuestionSpan]:
        """Every anchor-delimited span, before any filtering."""
        anchors = self.find_anchors(text)
        spans = []
        for i, anchor in enumerate(anchors):
            start = anchor.end()
            end = anchors[i + 1].start() if i + 1 < len(anchors) else len(text)
            spans.append(QuestionSpan(
                number=anchor.group(1),
                raw_text=text[start:end],
                start_offset=start,
                end_offset=end,
            ))
        return spans

    def accepts(self, span: QuestionSpan) -> bool:
        """Whether a candidate span looks like a real question."""
        body = span.raw_text.strip()
        if is_header(body):
            logger.debug(f"Span {span.number}: header, skipped")
            return False
        if not has_question_cue(body):
            logger.debug(f"Span {span.number}: no question cue, skipped")
            return False
        if is_option_only(body):
            logger.debug(f"Span {span.number}: options only, skipped")
            return False
        return True

    def segment(self, text: str) -> list[QuestionSpan]:
        return [s for s in self.candidate_spans(text) if self.accepts(s)]
