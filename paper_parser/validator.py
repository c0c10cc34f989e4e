"""
Validation Engine
=================
Post-parse validation and reporting.

After parsing each document, generates a report:
    - Total Questions Detected
    - Questions With Options
    - Missing Question Numbers (gaps in sequence)
    - Duplicate Question Numbers
    - Questions Missing Options
    - Anomaly breakdown by type
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import ParsedQuestion, ValidationReport

logger = logging.getLogger(__name__)


class ValidationEngine:
    """
    Validates parsed questions and produces a report.
    """

    def validate(
        self,
        questions: list[ParsedQuestion],
    ) -> ValidationReport:
        """
        Run full validation on parsed questions.

        Args:
            questions: List of parsed questions to validate.

        Returns:
            ValidationReport with all detected issues.
        """
        report = ValidationReport()

        if not questions:
            logger.warning("No questions to validate")
            return report

        report.total_questions_detected = len(questions)

        numbers = [int(q.number) for q in questions if q.number.isdigit()]
        number_counts = Counter(numbers)

        report.duplicate_question_numbers = sorted(
            num for num, count in number_counts.items() if count > 1
        )

        if numbers:
            expected = set(range(min(numbers), max(numbers) + 1))
            report.missing_question_numbers = sorted(expected - set(numbers))

        anomaly_counts: dict[str, int] = {}
        for q in questions:
            if q.options:
                report.questions_with_options += 1
            else:
                report.questions_missing_options.append(q.number)

            for anomaly in q.anomalies:
                key = anomaly.type.value
                anomaly_counts[key] = anomaly_counts.get(key, 0) + 1

        report.anomaly_breakdown = anomaly_counts

        logger.info(
            f"Validation: {report.total_questions_detected} questions, "
            f"{report.questions_with_options} with options "
            f"({report.success_rate}%), "
            f"{len(report.missing_question_numbers)} missing numbers, "
            f"{len(report.duplicate_question_numbers)} duplicates"
        )
        if report.anomaly_breakdown:
            for anomaly_type, count in sorted(report.anomaly_breakdown.items()):
                logger.info(f"  • {anomaly_type}: {count}")

        return report
