"""
Test Suite for the Document Pipeline
====================================
End-to-end tests for DocumentPipeline, BatchRunner, ingestion and CLI.
"""

from __future__ import annotations

import json
import logging

import pytest
from click.testing import CliRunner

import paper_parser.engine as engine
from paper_parser import (
    BatchRunner,
    DocumentParseError,
    DocumentPipeline,
    ParserConfig,
    PipelineState,
    RawDocument,
    parse_document,
    run_batch,
)
from paper_parser.batch import build_report
from paper_parser.cli import cli
from paper_parser.ingest import find_documents, load_document
from paper_parser.models import AnomalyType, BatchCounts, FileOutcome, SourceType


SCENARIO = (
    "JEE-MAIN EXAMINATION - JANUARY 2025 "
    "1. Find the value of x if x+2=5. (A) 1 (B) 2 (C) 3 (D) 4 Ans. (C)"
)


def _raw(text: str, source_id: str = "paper.pdf") -> RawDocument:
    return RawDocument(text=text, source_id=source_id)


@pytest.fixture
def pipeline():
    return DocumentPipeline(ParserConfig(log_level="WARNING"))


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT PIPELINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestDocumentPipeline:

    def test_scenario(self, pipeline):
        document = pipeline.parse(_raw(SCENARIO))

        assert document.metadata.year == 2025
        assert len(document.questions) == 1

        question = document.questions[0]
        assert question.number == "1"
        assert [o.label for o in question.options] == ["A", "B", "C", "D"]
        assert [o.text for o in question.options] == ["1", "2", "3", "4"]
        assert question.has_math
        assert "Ans." not in question.text

        assert document.stats.anchors_found == 1
        assert document.stats.questions_parsed == 1
        assert document.validation.success_rate == 100.0
        assert document.parser_version

    def test_module_level_parse(self):
        document = parse_document(_raw(SCENARIO), ParserConfig(log_level="WARNING"))
        assert len(document.questions) == 1

    def test_no_anchors(self, pipeline):
        document = pipeline.parse(_raw("no numbered questions in this text"))
        assert document.questions == []
        assert document.stats.anchors_found == 0
        assert [a.type for a in document.anomalies] == [
            AnomalyType.NO_QUESTION_ANCHORS
        ]
        assert document.word_count == 6

    def test_empty_text(self, pipeline):
        document = pipeline.parse(_raw(""))
        assert document.questions == []
        assert document.character_count == 0

    def test_dropped_question_counted(self, pipeline):
        text = (
            "1. Find x? Ans. (A) "
            "2. Find the value of y when y+1=3. (A) 1 (B) 2"
        )
        document = pipeline.parse(_raw(text))

        assert [q.number for q in document.questions] == ["2"]
        assert document.stats.anchors_found == 2
        assert document.stats.spans_filtered == 0
        assert document.stats.questions_parsed == 1
        assert document.stats.questions_dropped == 1
        dropped = [
            a for a in document.anomalies
            if a.type == AnomalyType.QUESTION_DROPPED
        ]
        assert len(dropped) == 1
        assert dropped[0].context["number"] == "1"

    def test_filtered_spans_counted(self, pipeline):
        text = "1. JEE-MAIN EXAMINATION 2. Find the value of x in this case."
        document = pipeline.parse(_raw(text))
        assert document.stats.anchors_found == 2
        assert document.stats.spans_filtered == 1
        assert [q.number for q in document.questions] == ["2"]

    def test_failure_is_atomic(self, pipeline, monkeypatch):
        def broken(_text):
            raise RuntimeError("classifier exploded")

        monkeypatch.setattr(engine, "classify_topics", broken)

        with pytest.raises(DocumentParseError) as exc_info:
            pipeline.parse(_raw(SCENARIO, "broken.pdf"))

        error = exc_info.value
        assert error.source_id == "broken.pdf"
        assert error.state == PipelineState.QUESTIONS_PARSED
        assert "classifier exploded" in error.reason

    def test_try_parse_failure(self, pipeline, monkeypatch):
        def broken(_source_id, _text):
            raise RuntimeError("bad header")

        monkeypatch.setattr(engine, "resolve_metadata", broken)
        outcome = pipeline.try_parse(_raw(SCENARIO))
        assert not outcome.success
        assert outcome.document is None
        assert outcome.failed_state == PipelineState.INGESTED.value
        assert outcome.error == "bad header"

    def test_mixed_labels_flagged(self, pipeline):
        text = "1. Find the value of x here. (A) apple (1) one thing"
        document = pipeline.parse(_raw(text))
        question = document.questions[0]
        assert [o.label for o in question.options] == ["1", "A"]
        assert [a.type for a in question.anomalies] == [
            AnomalyType.MIXED_OPTION_LABELS
        ]
        assert document.validation.anomaly_breakdown == {"mixed_option_labels": 1}

    def test_duplicate_numbers_flagged(self, pipeline):
        text = "1. Find the value of x in this. 1. Find the value of y in that."
        document = pipeline.parse(_raw(text))
        assert [q.number for q in document.questions] == ["1", "1"]
        assert document.validation.duplicate_question_numbers == [1]
        assert AnomalyType.DUPLICATE_QUESTION_NUMBER in [
            a.type for a in document.anomalies
        ]

    def test_html_escaping(self, pipeline):
        document = pipeline.parse(
            _raw("1. Find x when x < 3 & y > 2 holds true.")
        )
        question = document.questions[0]
        assert "&lt;" in question.formatted_text
        assert "&amp;" in question.formatted_text
        assert "<" in question.text

    def test_chemistry_detection(self, pipeline):
        document = pipeline.parse(_raw(
            "1. Identify the product when H2 reacts with O2 gas. "
            "2. Find the value of the sum here."
        ))
        chem, plain = document.questions
        assert chem.has_chemistry
        assert "H_2" in chem.latex_text
        assert not plain.has_chemistry

    def test_filename_metadata_and_topics(self, pipeline):
        document = pipeline.parse(_raw(
            "1. Find the velocity of the ball after two seconds.",
            "2024_physics_morning.txt",
        ))
        assert document.metadata.year == 2024
        assert document.metadata.subject == "Physics"
        assert document.metadata.shift == "Morning"
        assert "Mechanics" in [t.name for t in document.topics]
        kinematics = [s for s in document.subtopics if s.name == "Kinematics"]
        assert kinematics and kinematics[0].parent_topic == "Mechanics"

    def test_source_type_carried(self, pipeline):
        raw = RawDocument(
            text=SCENARIO, source_id="scan.txt", source_type=SourceType.IMAGE
        )
        assert pipeline.parse(raw).source_type == SourceType.IMAGE

    def test_short_bodies_respect_config(self):
        config = ParserConfig(min_question_length=5, log_level="WARNING")
        document = DocumentPipeline(config).parse(_raw("1. Find x? Ans. (A)"))
        assert [q.text for q in document.questions] == ["Find x?"]

    def test_spaced_operators_keep_options(self, pipeline):
        text = (
            "JEE-MAIN EXAMINATION - JANUARY 2025 "
            "1. Find the value of x if x + 2 = 5. (A) 1 (B) 2 (C) 3 (D) 4 Ans. (C)"
        )
        document = pipeline.parse(_raw(text))

        assert document.stats.anchors_found == 1
        assert len(document.questions) == 1
        question = document.questions[0]
        assert question.text == "Find the value of x if x + 2 = 5. (A) 1 (B) 2 (C) 3 (D) 4"
        assert [o.label for o in question.options] == ["A", "B", "C", "D"]

    def test_body_must_exceed_min_length(self, pipeline):
        document = pipeline.parse(
            _raw("1. Find the value of xy 2. Find the value of xyz")
        )
        assert [q.text for q in document.questions] == ["Find the value of xyz"]
        assert document.stats.questions_dropped == 1

    def test_cue_only_in_solution_dropped(self, pipeline):
        document = pipeline.parse(
            _raw("1. Lorem ipsum dolor sit amet. Sol. find x")
        )
        assert document.stats.anchors_found == 1
        assert document.stats.spans_filtered == 0
        assert document.questions == []
        assert document.stats.questions_dropped == 1
        assert "no question cue" in document.anomalies[0].context["reason"]

    def test_failure_logged_as_failed(self, monkeypatch, caplog):
        def broken(_text):
            raise RuntimeError("classifier exploded")

        monkeypatch.setattr(engine, "classify_topics", broken)
        pipeline = DocumentPipeline(ParserConfig(log_level="DEBUG"))

        with caplog.at_level(logging.DEBUG, logger="paper_parser"):
            with pytest.raises(DocumentParseError) as exc_info:
                pipeline.parse(_raw(SCENARIO, "broken.pdf"))

        assert exc_info.value.state == PipelineState.QUESTIONS_PARSED
        assert "broken.pdf: questions_parsed → failed" in caplog.text


# ═══════════════════════════════════════════════════════════════════════════════
# BATCH RUNNER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def _fail_for(source_id: str, monkeypatch):
    real = engine.resolve_metadata

    def resolve(name, text):
        if name == source_id:
            raise RuntimeError(f"cannot read {name}")
        return real(name, text)

    monkeypatch.setattr(engine, "resolve_metadata", resolve)


class TestBatchRunner:

    @pytest.mark.parametrize("workers", [1, 4])
    @pytest.mark.parametrize("order", [("good.pdf", "bad.pdf"), ("bad.pdf", "good.pdf")])
    def test_failure_isolated(self, monkeypatch, workers, order):
        _fail_for("bad.pdf", monkeypatch)
        config = ParserConfig(max_workers=workers, log_level="CRITICAL")
        documents = [_raw(SCENARIO, name) for name in order]

        report = BatchRunner(config).run(documents)

        assert [o.source_id for o in report.per_file] == list(order)
        by_name = {o.source_id: o for o in report.per_file}
        assert by_name["good.pdf"].success
        assert not by_name["bad.pdf"].success
        assert by_name["bad.pdf"].failed_state == "ingested"

        alone = DocumentPipeline(config).parse(_raw(SCENARIO, "good.pdf"))
        assert by_name["good.pdf"].document.questions == alone.questions
        assert by_name["good.pdf"].document.metadata == alone.metadata

        assert report.counts.total == 2
        assert report.counts.successful == 1
        assert report.counts.failed == 1
        assert report.errors == [
            {"type": "pdf", "file": "bad.pdf", "error": "cannot read bad.pdf"}
        ]

    def test_parallel_keeps_input_order(self):
        names = [f"paper_{i}.pdf" for i in range(8)]
        years = [2024, 2025, 2025, 2023, 2024, 2025, 2023, 2025]
        documents = [
            _raw(f"JANUARY {year} 1. Find the value of x if x+2=5.", name)
            for name, year in zip(names, years)
        ]

        report = run_batch(documents, ParserConfig(max_workers=4, log_level="WARNING"))

        assert [o.source_id for o in report.per_file] == names
        assert report.year_breakdown == {2023: 2, 2024: 2, 2025: 4}
        assert list(report.year_breakdown) == [2023, 2024, 2025]

    def test_progress_callback(self):
        seen = []
        runner = BatchRunner(ParserConfig(log_level="WARNING"))
        runner.run(
            [_raw(SCENARIO, "a.pdf"), _raw(SCENARIO, "b.pdf")],
            progress_callback=lambda outcome: seen.append(outcome.source_id),
        )
        assert sorted(seen) == ["a.pdf", "b.pdf"]

    def test_subject_breakdown(self):
        documents = [
            _raw("Mathematics 1. Find the value of x here.", "a.pdf"),
            _raw("Physics 1. Find the value of v here.", "b.pdf"),
            _raw("1. Find the value of y here.", "scan.pdf"),
        ]
        report = run_batch(documents, ParserConfig(log_level="WARNING"))
        assert report.subject_breakdown == {
            "Mathematics": 1,
            "Physics": 1,
            "Unknown": 1,
        }

    def test_empty_batch(self):
        report = build_report([])
        assert report.counts.total == 0
        assert report.per_file == []
        assert report.year_breakdown == {}

    def test_report_from_failures_only(self):
        report = build_report([
            FileOutcome(source_id="x.pdf", success=False, error="boom"),
        ])
        assert report.counts.failed == 1
        assert report.subject_breakdown == {}
        assert report.errors == [{"type": "pdf", "file": "x.pdf", "error": "boom"}]

    def test_source_type_split(self, monkeypatch):
        _fail_for("bad.txt", monkeypatch)
        documents = [
            _raw(SCENARIO, "a.pdf"),
            RawDocument(
                text=SCENARIO, source_id="scan.txt", source_type=SourceType.IMAGE
            ),
            RawDocument(
                text=SCENARIO, source_id="bad.txt", source_type=SourceType.IMAGE
            ),
        ]

        report = run_batch(documents, ParserConfig(log_level="CRITICAL"))

        assert report.source_type_counts == {
            "image": BatchCounts(total=2, successful=1, failed=1),
            "pdf": BatchCounts(total=1, successful=1, failed=0),
        }
        assert [o.source_type for o in report.per_file] == [
            SourceType.PDF, SourceType.IMAGE, SourceType.IMAGE,
        ]
        assert report.errors == [
            {"type": "image", "file": "bad.txt", "error": "cannot read bad.txt"}
        ]

    @pytest.mark.parametrize("workers", [1, 4])
    def test_progress_callback_errors_not_fatal(self, workers):
        def explode(_outcome):
            raise RuntimeError("display closed")

        runner = BatchRunner(ParserConfig(max_workers=workers, log_level="CRITICAL"))
        report = runner.run(
            [_raw(SCENARIO, "a.pdf"), _raw(SCENARIO, "b.pdf")],
            progress_callback=explode,
        )

        assert report.counts.total == 2
        assert report.counts.successful == 2


# ═══════════════════════════════════════════════════════════════════════════════
# INGESTION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestIngestion:

    def test_load_text_file(self, tmp_path):
        path = tmp_path / "2025_maths.txt"
        path.write_text(SCENARIO, encoding="utf-8")
        raw = load_document(str(path))
        assert raw.source_id == "2025_maths.txt"
        assert raw.text == SCENARIO
        assert raw.source_type == SourceType.PDF

    def test_load_with_source_type(self, tmp_path):
        path = tmp_path / "ocr.txt"
        path.write_text("text", encoding="utf-8")
        raw = load_document(str(path), SourceType.IMAGE)
        assert raw.source_type == SourceType.IMAGE

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_document(str(tmp_path / "missing.txt"))

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "paper.docx"
        path.write_text("x", encoding="utf-8")
        with pytest.raises(ValueError):
            load_document(str(path))

    def test_find_documents(self, tmp_path):
        (tmp_path / "b.txt").write_text("b", encoding="utf-8")
        (tmp_path / "a.txt").write_text("a", encoding="utf-8")
        (tmp_path / "notes.md").write_text("n", encoding="utf-8")
        found = find_documents(str(tmp_path))
        assert [p.name for p in found] == ["a.txt", "b.txt"]


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCLI:

    def test_convert(self):
        result = CliRunner().invoke(cli, ["convert", "H2O"])
        assert result.exit_code == 0
        assert "H_2O" in result.output
        assert "H<sub>2</sub>O" in result.output

    def test_parse_json_output(self, tmp_path):
        path = tmp_path / "paper.txt"
        path.write_text(SCENARIO, encoding="utf-8")

        result = CliRunner().invoke(cli, ["parse", str(path), "--json-output"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["source_id"] == "paper.txt"
        assert data["metadata"]["year"] == 2025
        assert len(data["questions"]) == 1
        assert len(data["questions"][0]["options"]) == 4

    def test_parse_unsupported_file(self, tmp_path):
        path = tmp_path / "paper.docx"
        path.write_text(SCENARIO, encoding="utf-8")
        result = CliRunner().invoke(cli, ["parse", str(path)])
        assert result.exit_code == 1

    def test_batch_writes_summary(self, tmp_path):
        source = tmp_path / "papers"
        source.mkdir()
        (source / "one.txt").write_text(SCENARIO, encoding="utf-8")
        (source / "two.txt").write_text(
            "JANUARY 2024 1. Find the value of y if y+1=3.", encoding="utf-8"
        )
        out = tmp_path / "out"

        result = CliRunner().invoke(
            cli, ["batch", str(source), "-o", str(out), "-j", "2"]
        )

        assert result.exit_code == 0
        summary = json.loads((out / "conversion-summary.json").read_text("utf-8"))
        assert summary["counts"]["total"] == 2
        assert summary["counts"]["successful"] == 2
        assert summary["source_type_counts"]["pdf"]["total"] == 2
        assert [f["source_id"] for f in summary["per_file"]] == ["one.txt", "two.txt"]
        assert "document" not in summary["per_file"][0]
        assert (out / "one.json").exists()
        assert (out / "two.json").exists()

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output
