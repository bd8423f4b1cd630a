"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="session-scorer",
    help="Session Scorer - behavioral-adherence scoring for agent session logs",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .watch import watch as _watch  # noqa: F401, E402
from .scan import scan as _scan  # noqa: F401, E402
from .report import report as _report  # noqa: F401, E402
from .score import score as _score  # noqa: F401, E402
from .score_dir import score_dir as _score_dir  # noqa: F401, E402
from .rules import rules as _rules  # noqa: F401, E402
