"""``session-scorer scan``: score every unseen session once and exit."""

import typer
from rich.markup import escape

from ..exceptions import SessionScorerError
from ..pipeline import ScanOrchestrator
from . import app
from ._common import console, get_config, get_store, print_scored


@app.command()
def scan(
    ctx: typer.Context,
    show_scores: bool = typer.Option(
        True,
        "--show/--no-show",
        help="Print each newly scored session",
    ),
):
    """
    Scan the sessions directory and score files not yet in the store.

    Existing entries are never modified; only unseen files are appended.
    """
    config = get_config(ctx)
    store = get_store(ctx)
    orchestrator = ScanOrchestrator(
        config, store, on_scored=print_scored if show_scores else None
    )

    console.print(f"[bold]Scanning[/bold] {escape(str(orchestrator.root_dir))}")
    try:
        new_count = orchestrator.scan()
        total = store.load_all().total_sessions
    except SessionScorerError as e:
        console.print(f"[red]Scan failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]Scan complete.[/green] {new_count} new session(s) scored.")
    console.print(f"Total sessions in store: {total}")
