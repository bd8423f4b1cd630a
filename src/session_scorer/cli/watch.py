"""``session-scorer watch``: long-running watch mode (the default)."""

import logging
import signal
import threading

import typer
from rich.markup import escape

from ..config import ScorerConfig
from ..exceptions import SessionScorerError
from ..store import ScoreStore
from ..watcher import SessionWatcher, WatcherState
from . import app
from ._common import console, get_config, print_scored

logger = logging.getLogger(__name__)


@app.command()
def watch(ctx: typer.Context):
    """
    Scan once, then score new session logs as they appear.

    Stops cleanly on Ctrl+C or SIGTERM; the store is only written after a
    session has been fully scored.
    """
    run_watch(get_config(ctx))


def run_watch(config: ScorerConfig) -> None:
    store = ScoreStore(config.scores_path)
    watcher = SessionWatcher(config, store, on_scored=print_scored)
    shutdown = threading.Event()

    console.print("[bold]Starting session watcher...[/bold]")
    console.print(f"  Watching: {escape(watcher.root_dir)}")
    console.print(f"  Scores file: {escape(str(store.path))}")
    console.print()

    _original_sigint = signal.getsignal(signal.SIGINT)
    _original_sigterm = signal.getsignal(signal.SIGTERM)

    def _signal_handler(signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        sig_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        logger.info("Received %s, shutting down watcher...", sig_name)
        shutdown.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        try:
            new_count = watcher.start()
        except SessionScorerError as e:
            console.print(f"[red]Watcher failed to start:[/red] {escape(str(e))}")
            raise typer.Exit(1)

        console.print(f"[green]Initial scan complete.[/green] {new_count} new session(s) scored.")
        console.print("[dim]Watching for new sessions... (Ctrl+C to stop)[/dim]")

        while not shutdown.wait(0.5):
            if watcher.state is WatcherState.FAILED:
                console.print(f"[red]Watcher stopped unexpectedly:[/red] {escape(str(watcher.failure))}")
                raise typer.Exit(1)
    finally:
        console.print("\n[dim]Shutting down watcher...[/dim]")
        watcher.stop()
        try:
            signal.signal(signal.SIGINT, _original_sigint)
            signal.signal(signal.SIGTERM, _original_sigterm)
        except (OSError, ValueError):
            pass  # Not in main thread
        console.print("[dim]Stopped.[/dim]")
