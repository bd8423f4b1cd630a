"""``session-scorer score-dir``: rule-based scoring of every transcript in a directory."""

import json
from pathlib import Path

import typer
from rich.markup import escape

from ..exceptions import SessionScorerError
from ..scoring.direct import DIRECTORY_MAX_DEPTH, TRANSCRIPT_EXTENSIONS, score_directory
from . import app
from ._common import console, format_grade, format_score, get_config


@app.command("score-dir")
def score_dir(
    ctx: typer.Context,
    directory: Path = typer.Argument(
        ...,
        help="Directory of transcripts (.md / .json) to score",
    ),
    fmt: str = typer.Option(
        "json",
        "--format",
        "-f",
        help="Output format: json (default) or summary",
    ),
):
    """
    Score every transcript in a directory against the behavioral rule set.

    Looks at most two levels deep and skips files over the transcript size
    limit. Nothing is written to the score store.

    [bold cyan]Examples:[/bold cyan]

      session-scorer score-dir ~/transcripts

      session-scorer score-dir ./logs --format summary
    """
    if fmt not in ("json", "summary"):
        console.print(f"[red]Unknown format:[/red] {escape(fmt)}")
        raise typer.Exit(2)

    config = get_config(ctx)
    try:
        scores = score_directory(
            directory,
            extensions=TRANSCRIPT_EXTENSIONS,
            max_depth=DIRECTORY_MAX_DEPTH,
            max_bytes=config.max_transcript_bytes,
        )
    except SessionScorerError as e:
        console.print(f"[red]Error:[/red] Failed to scan directory: {escape(str(e))}")
        raise typer.Exit(1)

    if fmt == "json":
        print(json.dumps([s.to_dict() for s in scores], indent=2))
        return

    average = sum(s.score for s in scores) / len(scores) if scores else 0.0
    console.print(f"Scanned {len(scores)} sessions")
    console.print(f"Average score: {average:.1f}%")
    if scores:
        console.print("\n[bold]Individual Scores:[/bold]")
        for s in scores:
            console.print(
                f"  {escape(s.session_id)}: {format_score(s.score)}% {format_grade(s.grade)}"
            )
