"""Run reporting.

Formats a finalized RunSummary into the machine-parseable output record
emitted once per run, and into a Rich table for interactive use. No
filesystem access happens here.
"""

import json
import sys
from typing import Any, TextIO

from rich.table import Table

from purgectl.deletion.models import RunSummary
from purgectl.utils.formatting import format_size


def report(summary: RunSummary) -> dict[str, Any]:
    """Build the structured output record for a run.

    Always produces a record, including for runs with zero candidates or
    nothing but errors.

    Args:
        summary: Finalized run summary.

    Returns:
        Dictionary with the output record fields.
    """
    return {
        "filesDeleted": summary.files_deleted,
        "directoriesRemoved": summary.directories_removed,
        "bytesFreed": summary.bytes_freed,
        "excludedCount": summary.excluded_count,
        "errorCount": summary.error_count,
        "errors": [e.to_dict() for e in summary.errors],
        "truncated": summary.truncated,
        "durationMs": summary.duration_ms,
        "filesSeen": summary.files_seen,
        "directoriesRetained": summary.directories_retained,
        "cancelled": summary.cancelled,
        "dryRun": summary.dry_run,
    }


def emit(record: dict[str, Any], stream: TextIO | None = None) -> None:
    """Write an output record as a single JSON line.

    Args:
        record: Output record from report().
        stream: Destination stream. Defaults to stdout.
    """
    out = stream if stream is not None else sys.stdout
    out.write(json.dumps(record, separators=(",", ":")) + "\n")
    out.flush()


def render_summary_table(summary: RunSummary, max_errors: int = 20) -> Table:
    """Create a Rich table describing a run summary.

    Args:
        summary: Finalized run summary.
        max_errors: Maximum number of error rows to include.

    Returns:
        Rich Table configured for summary display.
    """
    title = "Deletion Run (Dry Run)" if summary.dry_run else "Deletion Run"
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Metric", style="text")
    table.add_column("Value", justify="right")

    deleted_label = "Files that would be deleted" if summary.dry_run else "Files deleted"
    table.add_row(deleted_label, f"[success]{summary.files_deleted}[/success]")
    table.add_row("Directories removed", str(summary.directories_removed))
    table.add_row("Directories retained", f"[muted]{summary.directories_retained}[/muted]")
    table.add_row("Bytes freed", format_size(summary.bytes_freed))
    table.add_row("Excluded", f"[info]{summary.excluded_count}[/info]")

    error_style = "error" if summary.error_count else "muted"
    table.add_row("Errors", f"[{error_style}]{summary.error_count}[/{error_style}]")
    table.add_row("Truncated", "[warning]yes[/warning]" if summary.truncated else "no")
    table.add_row("Duration", f"{summary.duration_ms / 1000:.2f} s")

    for record in summary.errors[:max_errors]:
        table.add_row(f"[error]{record.kind.value}[/error]", f"[muted]{record.path}[/muted]")
    if summary.error_count > max_errors:
        table.add_row("", f"[muted](+{summary.error_count - max_errors} more)[/muted]")

    return table
