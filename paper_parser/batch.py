"""
Batch Runner
============
Parses a set of documents independently and reduces the per-file
outcomes into one BatchReport.

Documents share nothing, so they can be parsed on a thread pool in any
order. Outcomes are collected by input index, so the report lists one
record per input file in input order whatever the completion order.
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional

from .engine import DocumentPipeline, ParserConfig
from .models import BatchCounts, BatchReport, FileOutcome, RawDocument

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[FileOutcome], None]


class BatchRunner:
    """Runs the document pipeline over many documents."""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.pipeline = DocumentPipeline(self.config)

    def run(
        self,
        documents: list[RawDocument],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """
        Parse every document and build the batch report.

        Args:
            documents: Raw documents to parse.
            progress_callback: Called with each FileOutcome as it finishes.

        Returns:
            BatchReport with exactly one FileOutcome per input document.
        """
        logger.info(f"Batch of {len(documents)} documents")
        outcomes: list[Optional[FileOutcome]] = [None] * len(documents)

        if self.config.max_workers <= 1:
            for index, raw in enumerate(documents):
                outcomes[index] = self._parse_one(raw, progress_callback)
        else:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                futures = {
                    pool.submit(self._parse_one, raw, progress_callback): index
                    for index, raw in enumerate(documents)
                }
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()

        report = build_report(outcomes)
        logger.info(
            f"Batch complete: {report.counts.successful}/{report.counts.total} "
            f"documents parsed, {report.counts.failed} failures"
        )
        return report

    def _parse_one(
        self,
        raw: RawDocument,
        progress_callback: Optional[ProgressCallback],
    ) -> FileOutcome:
        outcome = self.pipeline.try_parse(raw)
        if progress_callback:
            try:
                progress_callback(outcome)
            except Exception as e:
                logger.warning(f"Progress callback failed for {raw.source_id}: {e}")
        return outcome


def _count(outcomes: list[FileOutcome]) -> BatchCounts:
    successful = sum(1 for o in outcomes if o.success)
    return BatchCounts(
        total=len(outcomes),
        successful=successful,
        failed=len(outcomes) - successful,
    )


def build_report(outcomes: list[FileOutcome]) -> BatchReport:
    """Reduce per-file outcomes into a BatchReport."""
    successes = [o for o in outcomes if o.success]

    by_source_type: dict[str, list[FileOutcome]] = {}
    for outcome in outcomes:
        by_source_type.setdefault(outcome.source_type.value, []).append(outcome)

    subjects = Counter(
        o.document.metadata.subject or "Unknown" for o in successes
    )
    years = Counter(
        o.document.metadata.year
        for o in successes
        if o.document.metadata.year is not None
    )

    return BatchReport(
        per_file=outcomes,
        counts=_count(outcomes),
        source_type_counts={
            source_type: _count(group)
            for source_type, group in sorted(by_source_type.items())
        },
        subject_breakdown=dict(subjects),
        year_breakdown=dict(sorted(years.items())),
        errors=[
            {
                "type": o.source_type.value,
                "file": o.source_id,
                "error": o.error or "",
            }
            for o in outcomes
            if not o.success
        ],
    )


def run_batch(
    documents: list[RawDocument],
    config: Optional[ParserConfig] = None,
) -> BatchReport:
    """Parse ``documents`` with a fresh BatchRunner."""
    return BatchRunner(config).run(documents)
