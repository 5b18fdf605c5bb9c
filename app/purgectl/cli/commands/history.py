"""History command for viewing past runs.

This module provides the `purgectl history` command for viewing the
audit trail of recorded deletion runs.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from purgectl.core.state import StateManager
from purgectl.models.history import RunRecord
from purgectl.utils.formatting import console, format_size, print_info

app = typer.Typer(
    name="history",
    help="View history of deletion runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of runs to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show recorded deletion runs, newest first.

    Examples:
        purgectl history            # Show last 20 runs
        purgectl history -n 50      # Show last 50 runs
        purgectl history --json     # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    records = StateManager().get_history(limit=limit)

    if not records:
        print_info("No runs recorded yet.")
        return

    if json_output:
        console.print_json(json.dumps([r.to_dict() for r in records]))
    else:
        _print_table(records)


def _print_table(records: list[RunRecord]) -> None:
    """Print run history as a Rich table."""
    table = Table(title="Deletion Runs")
    table.add_column("ID", style="dim")
    table.add_column("Finished", style="info")
    table.add_column("Scope")
    table.add_column("Deleted", justify="right")
    table.add_column("Freed", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Exit", justify="right")

    for record in records:
        report = record.report
        roots = ", ".join(record.roots[:2])
        if len(record.roots) > 2:
            roots += f" (+{len(record.roots) - 2} more)"
        if record.dry_run:
            roots += " [muted](dry-run)[/]"

        exit_style = "success" if record.exit_code == 0 else "warning"
        table.add_row(
            record.id[:8],
            _format_timestamp(record.timestamp),
            roots,
            str(report.get("filesDeleted", 0)),
            format_size(report.get("bytesFreed", 0)),
            str(report.get("errorCount", 0)),
            f"[{exit_style}]{record.exit_code}[/]",
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO 8601 timestamp for display."""
    try:
        dt = datetime.fromisoformat(iso_timestamp)
        return dt.strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso_timestamp[:16]
