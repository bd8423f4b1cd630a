"""Shared CLI helpers."""

import typer
from rich.console import Console
from rich.markup import escape

from ..config import ScorerConfig
from ..models import SessionScore
from ..store import ScoreStore

console = Console()

GRADE_STYLES = {
    "A": "bold green",
    "B": "green",
    "C": "yellow",
    "D": "dark_orange",
    "F": "bold red",
}


def get_config(ctx: typer.Context) -> ScorerConfig:
    """Config built by the root callback."""
    return ctx.obj["config"]


def get_store(ctx: typer.Context) -> ScoreStore:
    return ScoreStore(get_config(ctx).scores_path)


def format_grade(grade: str) -> str:
    style = GRADE_STYLES.get(grade, "white")
    return f"[{style}]{grade}[/{style}]"


def format_score(score: float) -> str:
    """Render whole-number scores without a trailing .0."""
    if float(score).is_integer():
        return str(int(score))
    return f"{score:.1f}"


def print_scored(score: SessionScore) -> None:
    """Console lines for one freshly scored session."""
    tools = ", ".join(score.metrics.tool_breakdown) if score.metrics else ""
    console.print(f"[bold]Scored session:[/bold] {escape(score.session_id)}")
    console.print(f"  Grade: {format_grade(score.grade)} ({format_score(score.score)}/100)")
    console.print(f"  Summary: {score.summary}", markup=False)
    console.print(f"  Tools used: {tools or 'none'}", markup=False)
    console.print()
