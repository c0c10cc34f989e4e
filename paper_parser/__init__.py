"""
Exam Paper Parser
=================
Best-effort extraction of structured questions from the raw text of
JEE-style exam papers.

Architecture:
    - Metadata Extractor: Year, session, shift, subject, date, paper type
    - Question Segmenter: Splits text on question number anchors
    - Answer Stripper: Cuts answers and solutions off question bodies
    - Option Extractor: Tiered (A)-(D) / (1)-(4) option recovery
    - Notation Converter: Plain-text math and chemistry to LaTeX / HTML
    - Equation Classifier: Typed equation tokens per question
    - Topic Classifier: Keyword-bag topic, subtopic and tag labels
    - Batch Runner: Per-file failure isolation and summary report

Version: 1.0.0
"""

__version__ = "1.0.0"

from .batch import BatchRunner, run_batch  # noqa: E402
from .engine import (  # noqa: E402
    DocumentParseError,
    DocumentPipeline,
    ParserConfig,
    PipelineState,
    parse_document,
)
from .models import BatchReport, ParsedDocument, RawDocument  # noqa: E402

__all__ = [
    "BatchReport",
    "BatchRunner",
    "DocumentParseError",
    "DocumentPipeline",
    "ParsedDocument",
    "ParserConfig",
    "PipelineState",
    "RawDocument",
    "parse_document",
    "run_batch",
]
