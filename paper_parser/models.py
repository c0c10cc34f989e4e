"""
Data Models
===========
Pydantic models for structured exam paper parsing output.
All models are serializable to JSON for downstream storage.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class SourceType(str, Enum):
    """Where the raw text came from."""
    PDF = "pdf"
    IMAGE = "image"


class EquationType(str, Enum):
    """Category of an equation found inside a question."""
    FRACTION = "fraction"
    POWER = "power"
    SQUARE_ROOT = "square_root"
    INTEGRAL = "integral"
    CHEMICAL_FORMULA = "chemical_formula"
    MATHEMATICAL = "mathematical"


class AnomalyType(str, Enum):
    """Types of structural anomalies detected during parsing."""
    NO_QUESTION_ANCHORS = "no_question_anchors"
    MIXED_OPTION_LABELS = "mixed_option_labels"
    QUESTION_DROPPED = "question_dropped"
    DUPLICATE_QUESTION_NUMBER = "duplicate_question_number"


Session = Literal["Session1", "Session2"]
Shift = Literal["Morning", "Evening"]
Subject = Literal["Mathematics", "Physics", "Chemistry", "Unknown"]
PaperType = Literal["With Solution", "Question Paper"]


# ─── Input ────────────────────────────────────────────────────────────────────


class RawDocument(BaseModel):
    """
    Already-extracted text of one source file.
    Built once by the ingestion step and read-only afterwards.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    source_type: SourceType = SourceType.PDF
    source_id: str = Field(description="Source filename")


# ─── Metadata ─────────────────────────────────────────────────────────────────


class DocumentMetadata(BaseModel):
    """Paper-level metadata. Every field is individually nullable."""
    year: Optional[int] = None
    session: Optional[Session] = None
    shift: Optional[Shift] = None
    subject: Optional[Subject] = None
    paper_type: Optional[PaperType] = None
    date: Optional[str] = None

    def merge(self, other: DocumentMetadata) -> DocumentMetadata:
        """
        Field-wise merge preferring ``other`` wherever it has a value.

        The pipeline calls ``filename_meta.merge(content_meta)`` so values
        found in the document text always override the filename.
        """
        merged = self.model_dump()
        for name, value in other.model_dump().items():
            if value is not None:
                merged[name] = value
        return DocumentMetadata(**merged)


# ─── Question Models ──────────────────────────────────────────────────────────


class QuestionSpan(BaseModel):
    """A provisional question: a slice of the cleaned document text."""
    number: str
    raw_text: str
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)


class Option(BaseModel):
    """One multiple-choice option."""
    model_config = ConfigDict(frozen=True)

    label: str = Field(description='"A".."D" or "1".."4"')
    text: str
    formatted_text: str = ""
    latex_text: str = ""


class Equation(BaseModel):
    """An equation-shaped token found inside a question."""
    model_config = ConfigDict(frozen=True)

    original: str
    latex: str
    type: EquationType


class ExpressionMatch(BaseModel):
    """A document-level math or chemical expression hit."""
    expression: str
    type: Literal["mathematical", "chemical"]
    position: int = Field(ge=0)


class Anomaly(BaseModel):
    """A structural anomaly detected in a question or document."""
    type: AnomalyType
    severity: int = Field(
        ge=0, le=100,
        description="Severity score 0-100"
    )
    message: str
    context: Optional[dict] = None


class ParsedQuestion(BaseModel):
    """
    A fully parsed question with its options and equations.
    Immutable once built.
    """
    model_config = ConfigDict(frozen=True)

    number: str
    text: str
    formatted_text: str = Field(
        default="",
        description="HTML-escaped text for rich text editors"
    )
    latex_text: str = ""
    options: list[Option] = Field(default_factory=list)
    has_math: bool = False
    has_chemistry: bool = False
    equations: list[Equation] = Field(default_factory=list)
    anomalies: list[Anomaly] = Field(default_factory=list)

    @computed_field
    @property
    def anomaly_score(self) -> int:
        """Aggregate anomaly score (0-100)."""
        if not self.anomalies:
            return 0
        return min(100, sum(a.severity for a in self.anomalies))


# ─── Classification Models ────────────────────────────────────────────────────


class TopicMatch(BaseModel):
    """A keyword-bag topic hit. Confidence is a ranking signal only."""
    name: str
    confidence: float = Field(gt=0, le=1)
    matched_keywords: list[str] = Field(default_factory=list)
    candidate_subtopics: list[str] = Field(default_factory=list)


class SubtopicMatch(BaseModel):
    """A subtopic hit nominated by an already-matched topic."""
    name: str
    parent_topic: str
    confidence: float = Field(gt=0, le=1)
    matched_keywords: list[str] = Field(default_factory=list)


# ─── Document / Report Models ─────────────────────────────────────────────────


class ParseStats(BaseModel):
    """Counts of what happened to question anchors inside one document."""
    anchors_found: int = 0
    spans_filtered: int = 0
    questions_parsed: int = 0
    questions_dropped: int = 0


class ValidationReport(BaseModel):
    """Post-parse validation report."""
    total_questions_detected: int = 0
    questions_with_options: int = 0
    missing_question_numbers: list[int] = Field(default_factory=list)
    duplicate_question_numbers: list[int] = Field(default_factory=list)
    questions_missing_options: list[str] = Field(default_factory=list)
    anomaly_breakdown: dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def success_rate(self) -> float:
        if self.total_questions_detected == 0:
            return 0.0
        return round(
            self.questions_with_options / self.total_questions_detected * 100,
            2
        )


class ParsedDocument(BaseModel):
    """
    Complete output of one pipeline run.
    Owned by the caller; the pipeline keeps no reference to it.
    """
    source_id: str
    source_type: SourceType = SourceType.PDF
    parser_version: str = ""
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    questions: list[ParsedQuestion] = Field(default_factory=list)
    topics: list[TopicMatch] = Field(default_factory=list)
    subtopics: list[SubtopicMatch] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    math_expressions: list[ExpressionMatch] = Field(default_factory=list)
    chemical_equations: list[ExpressionMatch] = Field(default_factory=list)
    word_count: int = 0
    character_count: int = 0
    stats: ParseStats = Field(default_factory=ParseStats)
    validation: ValidationReport = Field(default_factory=ValidationReport)
    anomalies: list[Anomaly] = Field(default_factory=list)


class FileOutcome(BaseModel):
    """Per-file result of a batch run: a document or an error record."""
    source_id: str
    source_type: SourceType = SourceType.PDF
    success: bool
    error: Optional[str] = None
    failed_state: Optional[str] = None
    document: Optional[ParsedDocument] = None


class BatchCounts(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0


class BatchReport(BaseModel):
    """Aggregate of one batch run, built once after all files finish."""
    generated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    per_file: list[FileOutcome] = Field(default_factory=list)
    counts: BatchCounts = Field(default_factory=BatchCounts)
    source_type_counts: dict[str, BatchCounts] = Field(
        default_factory=dict,
        description="Counts split by source type (pdf, image)"
    )
    subject_breakdown: dict[str, int] = Field(default_factory=dict)
    year_breakdown: dict[int, int] = Field(default_factory=dict)
    errors: list[dict[str, str]] = Field(default_factory=list)
