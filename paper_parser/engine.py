"""
Document Pipeline
=================
Main orchestrator that turns the raw text of one exam paper into a
ParsedDocument.

Usage:
    pipeline = DocumentPipeline(config)
    document = pipeline.parse(raw_document)

Architecture:
    RawDocument → MetadataExtractor → QuestionSegmenter →
    (AnswerStripper → OptionExtractor → EquationClassifier) per span →
    TopicClassifier / TagExtractor → ValidationEngine → ParsedDocument

A span that fails inside the per-question step is dropped and counted.
Any other error fails the whole document with a DocumentParseError.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from . import __version__
from .answer_stripper import strip_answer
from .classifier import classify_subtopics, classify_topics, extract_tags
from .equations import (
    EquationClassifier,
    extract_chemical_equations,
    extract_math_expressions,
)
from .metadata import resolve_metadata
from .models import (
    Anomaly,
    AnomalyType,
    FileOutcome,
    ParsedDocument,
    ParsedQuestion,
    ParseStats,
    QuestionSpan,
    RawDocument,
)
from .notation import render_latex, to_html
from .option_extractor import extract_options, has_mixed_labels
from .segmenter import QuestionSegmenter, clean_text, has_question_cue
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

MATH_SYMBOLS = re.compile(r"[+\-*/=<>(){}\[\]^_|\\]")
CHEMISTRY_MARKERS = re.compile(r"[A-Z][a-z]?\d+|→|⇌|↑|↓|\((?:s|l|g|aq)\)")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ParserConfig:
    """Configuration for the parsing pipeline."""

    # Question filtering (bodies must be longer than min_question_length)
    min_question_length: int = 20
    min_option_length: int = 1

    # Batch processing
    max_workers: int = 1

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class PipelineState(str, Enum):
    """Stages a document moves through."""
    INGESTED = "ingested"
    METADATA_RESOLVED = "metadata_resolved"
    SEGMENTED = "segmented"
    QUESTIONS_PARSED = "questions_parsed"
    CLASSIFIED = "classified"
    DONE = "done"
    FAILED = "failed"


class DocumentParseError(RuntimeError):
    """A document failed as a whole; carries the stage it failed in."""

    def __init__(self, source_id: str, state: PipelineState, reason: str):
        super().__init__(f"{source_id}: failed during {state.value}: {reason}")
        self.source_id = source_id
        self.state = state
        self.reason = reason


class QuestionParseError(ValueError):
    """A single question span could not be turned into a question."""


class DocumentPipeline:
    """
    Per-document parsing pipeline.

    Holds no per-document state, so one instance can parse documents
    from several threads at once.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.segmenter = QuestionSegmenter()
        self.equations = EquationClassifier()
        self.validator = ValidationEngine()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("paper_parser")
        package_logger.setLevel(log_level)

        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
            package_logger.addHandler(console)

        if self.config.log_file and not any(
            isinstance(h, logging.FileHandler) for h in package_logger.handlers
        ):
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
            package_logger.addHandler(file_handler)

    # ─── Public API ───────────────────────────────────────────────────────

    def parse(self, raw: RawDocument) -> ParsedDocument:
        """
        Parse one document.

        Raises:
            DocumentParseError: If any step outside the per-question
                sub-pipeline raises.
        """
        start_time = time.time()
        state = PipelineState.INGESTED
        logger.info(f"Starting parse of: {raw.source_id}")

        try:
            metadata = resolve_metadata(raw.source_id, raw.text)
            state = self._advance(raw, state, PipelineState.METADATA_RESOLVED)

            cleaned = clean_text(raw.text)
            candidates = self.segmenter.candidate_spans(cleaned)
            spans = [s for s in candidates if self.segmenter.accepts(s)]
            stats = ParseStats(
                anchors_found=len(candidates),
                spans_filtered=len(candidates) - len(spans),
            )
            anomalies: list[Anomaly] = []
            if not candidates:
                logger.warning(f"{raw.source_id}: no question anchors found")
                anomalies.append(Anomaly(
                    type=AnomalyType.NO_QUESTION_ANCHORS,
                    severity=50,
                    message="No question number anchors found in text",
                ))
            state = self._advance(raw, state, PipelineState.SEGMENTED)

            questions = self._parse_spans(raw, spans, stats, anomalies)
            state = self._advance(raw, state, PipelineState.QUESTIONS_PARSED)

            topics = classify_topics(cleaned)
            subtopics = classify_subtopics(cleaned, topics)
            tags = extract_tags(cleaned)
            state = self._advance(raw, state, PipelineState.CLASSIFIED)

            validation = self.validator.validate(questions)
            for number in validation.duplicate_question_numbers:
                anomalies.append(Anomaly(
                    type=AnomalyType.DUPLICATE_QUESTION_NUMBER,
                    severity=20,
                    message=f"Question number {number} appears more than once",
                    context={"number": number},
                ))

            document = ParsedDocument(
                source_id=raw.source_id,
                source_type=raw.source_type,
                parser_version=__version__,
                metadata=metadata,
                questions=questions,
                topics=topics,
                subtopics=subtopics,
                tags=tags,
                math_expressions=extract_math_expressions(cleaned),
                chemical_equations=extract_chemical_equations(cleaned),
                word_count=len(cleaned.split()),
                character_count=len(cleaned),
                stats=stats,
                validation=validation,
                anomalies=anomalies,
            )
            self._advance(raw, state, PipelineState.DONE)

        except Exception as e:
            logger.error(f"{raw.source_id}: failed during {state.value}: {e}")
            self._advance(raw, state, PipelineState.FAILED)
            raise DocumentParseError(raw.source_id, state, str(e)) from e

        elapsed = time.time() - start_time
        logger.info(
            f"Parse complete in {elapsed:.2f}s: "
            f"{len(questions)} questions extracted from {raw.source_id}"
        )
        return document

    def try_parse(self, raw: RawDocument) -> FileOutcome:
        """Parse one document, turning a failure into an error record."""
        try:
            document = self.parse(raw)
        except DocumentParseError as e:
            return FileOutcome(
                source_id=raw.source_id,
                source_type=raw.source_type,
                success=False,
                error=e.reason,
                failed_state=e.state.value,
            )
        return FileOutcome(
            source_id=raw.source_id,
            source_type=raw.source_type,
            success=True,
            document=document,
        )

    # ─── Steps ────────────────────────────────────────────────────────────

    def _advance(
        self,
        raw: RawDocument,
        current: PipelineState,
        target: PipelineState,
    ) -> PipelineState:
        logger.debug(f"{raw.source_id}: {current.value} → {target.value}")
        return target

    def _parse_spans(
        self,
        raw: RawDocument,
        spans: list[QuestionSpan],
        stats: ParseStats,
        anomalies: list[Anomaly],
    ) -> list[ParsedQuestion]:
        questions = []
        for span in spans:
            try:
                questions.append(self.parse_span(span))
            except Exception as e:
                stats.questions_dropped += 1
                logger.warning(
                    f"{raw.source_id}: dropped question {span.number}: {e}"
                )
                anomalies.append(Anomaly(
                    type=AnomalyType.QUESTION_DROPPED,
                    severity=30,
                    message=f"Question {span.number} could not be parsed",
                    context={"number": span.number, "reason": str(e)},
                ))
        stats.questions_parsed = len(questions)
        return questions

    def parse_span(self, span: QuestionSpan) -> ParsedQuestion:
        """Strip answers, extract options and equations for one span."""
        body = strip_answer(span.raw_text)
        if len(body) <= self.config.min_question_length:
            raise QuestionParseError(
                f"body too short after stripping ({len(body)} chars)"
            )
        if not has_question_cue(body):
            raise QuestionParseError("no question cue left after stripping")

        options = extract_options(body, min_length=self.config.min_option_length)

        anomalies = []
        if has_mixed_labels(options):
            anomalies.append(Anomaly(
                type=AnomalyType.MIXED_OPTION_LABELS,
                severity=40,
                message="Options mix numeric and letter labels",
                context={"labels": [o.label for o in options]},
            ))

        return ParsedQuestion(
            number=span.number,
            text=body,
            formatted_text=to_html(body),
            latex_text=render_latex(body),
            options=options,
            has_math=bool(MATH_SYMBOLS.search(body)),
            has_chemistry=bool(CHEMISTRY_MARKERS.search(body)),
            equations=self.equations.extract(body),
            anomalies=anomalies,
        )


def parse_document(
    raw: RawDocument,
    config: Optional[ParserConfig] = None,
) -> ParsedDocument:
    """Parse one document with a fresh pipeline."""
    return DocumentPipeline(config).parse(raw)
