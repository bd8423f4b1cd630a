"""``session-scorer score``: rule-based scoring of one transcript file."""

import json
from pathlib import Path

import typer
from rich.markup import escape

from ..exceptions import SessionScorerError
from ..models import SessionScore
from ..pipeline import normalize_path
from ..scoring.direct import score_transcript
from . import app
from ._common import console, format_grade, format_score, get_config, get_store


@app.command()
def score(
    ctx: typer.Context,
    transcript: Path = typer.Argument(
        ...,
        help="Transcript file to score",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    session: str = typer.Option(
        None,
        "--session",
        "-S",
        help="Session id (default: transcript file name without extension)",
    ),
    fmt: str = typer.Option(
        "json",
        "--format",
        "-f",
        help="Output format: json (default) or summary",
    ),
    save: bool = typer.Option(
        False,
        "--save",
        help="Append the result to the score store (skipped if the file is already scored)",
    ),
):
    """
    Score a transcript against the behavioral rule set.

    [bold cyan]Examples:[/bold cyan]

      session-scorer score transcript.md --session demo-1

      session-scorer score transcript.md --format summary --save
    """
    if fmt not in ("json", "summary"):
        console.print(f"[red]Unknown format:[/red] {fmt}")
        raise typer.Exit(2)

    config = get_config(ctx)
    session_id = session or transcript.stem
    file_path = normalize_path(transcript)

    try:
        text = transcript.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        console.print(f"[red]Error:[/red] Failed to read transcript file: {escape(str(e))}")
        raise typer.Exit(1)

    try:
        result = score_transcript(
            session_id,
            text,
            file_path=file_path,
            max_bytes=config.max_transcript_bytes,
        )
    except SessionScorerError as e:
        console.print(f"[red]Error:[/red] Failed to score session: {escape(str(e))}")
        raise typer.Exit(1)

    if save:
        try:
            store = get_store(ctx)
            with store.transaction() as report:
                if report.contains(file_path):
                    console.print(f"[yellow]Already scored:[/yellow] {escape(file_path)}")
                else:
                    report.add(result)
                    store.save(report)
        except SessionScorerError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    if fmt == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _output_summary(result)


def _output_summary(result: SessionScore) -> None:
    console.print(f"Session: {escape(result.session_id)}")
    console.print(
        f"Score: {format_score(result.score)}% {format_grade(result.grade)} "
        f"(weighted {result.weighted_percentage:.1f}%)"
    )
    console.print(f"Passed: {result.passed_rules}/{result.total_rules}")
    console.print()
    console.print(result.summary, markup=False)
    console.print("\n[bold]Rule Details:[/bold]")
    for check in result.rules or []:
        status = "[green]PASS[/green]" if check.passed else "[red]FAIL[/red]"
        console.print(f"  {status} {check.rule_name}")
