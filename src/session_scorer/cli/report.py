"""``session-scorer report``: summarise the score store without scanning."""

import json

import typer
from rich.markup import escape
from rich.table import Table

from ..exceptions import SessionScorerError
from ..models import ScoreReport
from . import app
from ._common import console, format_grade, format_score, get_config, get_store

SESSION_ID_WIDTH = 20


@app.command()
def report(
    ctx: typer.Context,
    recent: int = typer.Option(
        None,
        "--recent",
        "-n",
        help="Number of recent sessions to list (default from config)",
        min=0,
        max=1000,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Print grade distribution, average score and recent sessions.

    [bold cyan]Examples:[/bold cyan]

      session-scorer report

      session-scorer report --recent 10

      session-scorer report --json
    """
    config = get_config(ctx)
    limit = config.recent_sessions if recent is None else recent

    try:
        score_report = get_store(ctx).load_all()
    except SessionScorerError as e:
        console.print(f"[red]Error reading score store:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(build_summary(score_report, limit), indent=2))
    else:
        _output_rich(score_report, limit)


def build_summary(score_report: ScoreReport, limit: int) -> dict:
    """Aggregate view of the store used by ``--json``."""
    return {
        "lastScan": score_report.last_scan,
        "totalSessions": score_report.total_sessions,
        "gradeDistribution": score_report.grade_distribution(),
        "averageScore": score_report.average_score(),
        "recent": [s.to_dict() for s in score_report.recent(limit)],
    }


def _output_rich(score_report: ScoreReport, limit: int) -> None:
    console.print()
    console.print("[bold]=== Session Scoring Report ===[/bold]")
    console.print()
    console.print(f"Last scan: {score_report.last_scan}")
    console.print(f"Total sessions: {score_report.total_sessions}")

    if not score_report.scores:
        console.print("\n[yellow]No sessions scored yet.[/yellow]")
        return

    console.print("\n[bold]Grade Distribution:[/bold]")
    for grade, count in score_report.grade_distribution().items():
        bar = "█" * count
        console.print(f"  {format_grade(grade)}: {bar} ({count})")

    average = score_report.average_score()
    console.print(f"\n[bold]Average Score:[/bold] {average:.1f}/100")

    recent = score_report.recent(limit)
    if not recent:
        return

    table = Table(title="Recent Sessions", show_lines=False, pad_edge=True)
    table.add_column("Grade", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Session", style="cyan")
    table.add_column("Summary", style="dim")

    for s in recent:
        session_id = s.session_id
        if len(session_id) > SESSION_ID_WIDTH:
            session_id = session_id[:SESSION_ID_WIDTH] + "..."
        table.add_row(format_grade(s.grade), format_score(s.score), escape(session_id), escape(s.summary))

    console.print()
    console.print(table)
    console.print()
