"""Root callback: global options, config loading, default watch mode."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from .. import __version__
from ..config import load_config
from ..exceptions import SessionScorerError
from ..logging_config import setup_logging
from . import app
from ._common import console


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"session-scorer {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    sessions_dir: Optional[Path] = typer.Option(
        None,
        "--sessions-dir",
        "-d",
        help="Root directory of session logs (default: $SESSIONS_DIR or ~/.codex/sessions)",
        file_okay=False,
        dir_okay=True,
    ),
    scores_file: Optional[Path] = typer.Option(
        None,
        "--scores-file",
        "-s",
        help="Score store JSON file (default: $SCORES_FILE or ./session-scores.json)",
        dir_okay=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    Score recorded agent sessions and keep the score store in sync.

    Without a subcommand, scans the sessions directory once and then keeps
    watching it for new session logs.

    [bold cyan]Examples:[/bold cyan]

      session-scorer

      session-scorer --sessions-dir ~/.codex/sessions scan

      session-scorer report
    """
    setup_logging(
        verbose=verbose,
        quiet=quiet,
        log_file=str(log_file) if log_file else None,
    )

    try:
        settings = load_config(
            config_file=config,
            sessions_dir=str(sessions_dir) if sessions_dir else None,
            scores_file=str(scores_file) if scores_file else None,
            verbose=verbose,
            quiet=quiet,
        )
    except SessionScorerError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    ctx.ensure_object(dict)
    ctx.obj["config"] = settings

    if ctx.invoked_subcommand is None:
        from .watch import run_watch

        run_watch(settings)
