"""
CLI Interface
=============
Command-line interface for the exam paper parser.

Usage:
    python -m paper_parser parse <file> [options]
    python -m paper_parser batch <directory> [options]
    python -m paper_parser convert "<text>"
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from . import __version__
from .batch import BatchRunner
from .engine import DocumentParseError, DocumentPipeline, ParserConfig
from .ingest import find_documents, load_document
from .models import SourceType
from .notation import to_chemistry_markup, to_html, to_latex

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="paper-parser")
def cli():
    """Exam Paper Parser: JEE question extractor."""
    pass


@cli.command()
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--source-type",
    default=None,
    type=click.Choice([t.value for t in SourceType]),
    help="Source of the text (defaults to pdf)",
)
@click.option(
    "--output", "-o",
    default=None,
    help="Directory to write the parsed JSON into",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    path: str,
    source_type: str,
    output: str,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Parse a single text or PDF file into structured questions."""

    if json_output:
        log_level = "ERROR"

    config = ParserConfig(log_level=log_level, log_file=log_file)

    try:
        raw = load_document(
            path, SourceType(source_type) if source_type else None
        )
        document = DocumentPipeline(config).parse(raw)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except DocumentParseError as e:
        console.print(f"[red]Parse failed:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)

    if output:
        _save_json(document.model_dump(mode="json"), Path(output) / f"{Path(path).stem}.json")

    if json_output:
        print(json.dumps(
            document.model_dump(mode="json"),
            indent=2,
            ensure_ascii=False,
        ))
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Exam Paper Parser v{__version__}[/]\n"
            f"[dim]Parsed: {os.path.basename(path)}[/]",
            border_style="cyan",
        )
    )
    _display_document(document)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--output", "-o", default=None, help="Output directory")
@click.option("--log-level", default="WARNING", help="Logging level")
@click.option(
    "--parallel", "-j",
    default=1,
    type=int,
    help="Number of parallel parse workers (1 = sequential)",
)
def batch(directory: str, output: str, log_level: str, parallel: int):
    """Batch parse all text and PDF files in a directory."""

    files = find_documents(directory)

    if not files:
        console.print(f"[yellow]No .txt or .pdf files found in: {directory}[/]")
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Batch Paper Parser[/]\n"
            f"[dim]Found {len(files)} files in: {directory}[/]",
            border_style="cyan",
        )
    )
    console.print()

    documents = []
    load_errors = []
    for file_path in files:
        try:
            documents.append(load_document(str(file_path)))
        except Exception as e:
            load_errors.append((file_path.name, str(e)))

    config = ParserConfig(log_level=log_level, max_workers=parallel)
    runner = BatchRunner(config)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Parsing documents...", total=len(documents))
        report = runner.run(
            documents,
            progress_callback=lambda _outcome: progress.advance(task),
        )

    if output:
        out_dir = Path(output)
        for outcome in report.per_file:
            if outcome.document is not None:
                _save_json(
                    outcome.document.model_dump(mode="json"),
                    out_dir / f"{Path(outcome.source_id).stem}.json",
                )
        _save_json(
            report.model_dump(mode="json", exclude={"per_file": {"__all__": {"document"}}}),
            out_dir / "conversion-summary.json",
        )

    _display_batch_summary(report, load_errors)


@cli.command()
@click.argument("text")
def convert(text: str):
    """Show the LaTeX, chemistry and HTML renderings of TEXT."""
    table = Table(title="Notation Conversion", border_style="cyan")
    table.add_column("Form", style="bold")
    table.add_column("Value")
    table.add_row("Input", text)
    table.add_row("LaTeX", to_latex(text))
    table.add_row("Chemistry", to_chemistry_markup(text))
    table.add_row("HTML", to_html(text))
    console.print(table)


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _save_json(data: dict, filepath: Path):
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    console.print(f"[dim]Saved: {filepath}[/]")


def _display_document(document):
    """Display parse results in formatted tables."""
    console.print()

    meta = document.metadata
    table = Table(title="Paper Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Source", document.source_id)
    table.add_row("Subject", meta.subject or "(unknown)")
    table.add_row("Year", str(meta.year) if meta.year else "(not found)")
    table.add_row("Session", meta.session or "-")
    table.add_row("Shift", meta.shift or "-")
    table.add_row("Date", meta.date or "-")
    table.add_row("Paper Type", meta.paper_type or "-")
    table.add_row("Words", str(document.word_count))
    console.print(table)
    console.print()

    questions = Table(title="Questions", border_style="green")
    questions.add_column("#", justify="right", style="bold")
    questions.add_column("Text")
    questions.add_column("Options", justify="right")
    questions.add_column("Equations", justify="right")
    questions.add_column("Math", justify="center")
    for q in document.questions:
        text = q.text if len(q.text) <= 60 else q.text[:57] + "..."
        questions.add_row(
            q.number,
            text,
            str(len(q.options)),
            str(len(q.equations)),
            "[green]✓[/]" if q.has_math else "-",
        )
    console.print(questions)
    console.print()

    _display_validation_table(document)

    if document.topics:
        topics = ", ".join(
            f"{t.name} ({t.confidence:.2f})" for t in document.topics
        )
        console.print(f"[bold]Topics:[/] {topics}")
    if document.tags:
        console.print(f"[bold]Tags:[/] {', '.join(document.tags)}")
    console.print()


def _display_validation_table(document):
    """Display validation report as a rich table."""
    validation = document.validation
    stats = document.stats

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[red]✗[/]"

    table = Table(title="Validation Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    table.add_row(
        "Question Anchors",
        str(stats.anchors_found),
        "[green]✓[/]" if stats.anchors_found > 0 else "[red]✗[/]",
    )
    table.add_row("Spans Filtered", str(stats.spans_filtered), "")
    table.add_row(
        "Questions Dropped",
        str(stats.questions_dropped),
        status_icon(stats.questions_dropped),
    )
    table.add_row(
        "With Options",
        f"{validation.questions_with_options} ({validation.success_rate}%)",
        "[green]✓[/]" if validation.success_rate >= 90 else "[yellow]⚠[/]",
    )
    table.add_row(
        "Missing Question Numbers",
        str(len(validation.missing_question_numbers)),
        status_icon(len(validation.missing_question_numbers)),
    )
    table.add_row(
        "Duplicate Question Numbers",
        str(len(validation.duplicate_question_numbers)),
        status_icon(len(validation.duplicate_question_numbers)),
    )
    console.print(table)
    console.print()


def _display_batch_summary(report, load_errors):
    """Display batch processing summary."""
    console.print()

    table = Table(title="Batch Processing Summary", border_style="cyan")
    table.add_column("File", style="bold")
    table.add_column("Year", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Status", justify="center")

    total_questions = 0
    for outcome in report.per_file:
        if outcome.success:
            doc = outcome.document
            total_questions += len(doc.questions)
            table.add_row(
                outcome.source_id,
                str(doc.metadata.year or "-"),
                str(len(doc.questions)),
                "[green]✓[/]",
            )
        else:
            table.add_row(outcome.source_id, "-", "-", "[red]✗ FAILED[/]")

    for name, _error in load_errors:
        table.add_row(name, "-", "-", "[red]✗ UNREADABLE[/]")

    console.print(table)
    console.print()
    console.print(
        f"[bold]Total:[/] {total_questions} questions from "
        f"{report.counts.successful} files, "
        f"{report.counts.failed + len(load_errors)} failures"
    )
    if report.year_breakdown:
        years = ", ".join(f"{y}: {n}" for y, n in report.year_breakdown.items())
        console.print(f"[bold]Years:[/] {years}")
    console.print()


if __name__ == "__main__":
    cli()
