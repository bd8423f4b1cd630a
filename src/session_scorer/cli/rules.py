"""``session-scorer rules``: list the behavioral rule catalog."""

from rich.table import Table

from ..scoring.rules import DEFAULT_RULES
from . import app
from ._common import console


@app.command()
def rules():
    """List the behavioral rules used for transcript scoring."""
    table = Table(title="Behavior Scoring Rules", show_lines=False, pad_edge=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Description")

    for i, rule in enumerate(DEFAULT_RULES, 1):
        table.add_row(str(i), rule.id, rule.category.value, f"{rule.weight:g}", rule.description)

    console.print()
    console.print(table)
    console.print()
