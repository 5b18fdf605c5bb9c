"""Run command for scheduled deletion.

This module provides the `purgectl run` command, the single entry point
an external scheduler invokes. Every option can also be supplied through
a PURGECTL_* environment variable or the config file.
"""

import contextlib
import logging
import signal
import threading
from collections.abc import Iterator
from enum import Enum
from pathlib import Path
from types import FrameType
from typing import Annotated, Any

import typer

from purgectl.core.config import ConfigError, RunConfig, build_config
from purgectl.core.state import StateManager
from purgectl.deletion.errors import InvalidScopeError
from purgectl.deletion.models import ExitCode
from purgectl.deletion.reporter import emit, render_summary_table
from purgectl.deletion.runner import DeletionRunner, RunResult
from purgectl.models.history import create_run_record
from purgectl.utils.formatting import console, print_error, print_warning

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="run",
    help="Delete everything in scope that is not excluded.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options for the run summary."""

    JSON = "json"
    TABLE = "table"


@app.callback(invoke_without_command=True)
def run(
    mount_path: Annotated[
        Path | None,
        typer.Option(
            "--mount-path",
            "-m",
            envvar="PURGECTL_MOUNT_PATH",
            help="Root of the mounted file system.",
        ),
    ] = None,
    tenants: Annotated[
        list[str] | None,
        typer.Option(
            "--tenant",
            "-t",
            envvar="PURGECTL_TENANTS",
            help=(
                "Tenant directory to scope to (repeatable, 'all' for every tenant). "
                "PURGECTL_TENANTS takes a space-separated list."
            ),
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-x",
            envvar="PURGECTL_EXCLUDE",
            help=(
                "Glob pattern of base names to keep (repeatable). "
                "PURGECTL_EXCLUDE takes a space-separated list; use the flag or the "
                "config file for patterns containing spaces."
            ),
        ),
    ] = None,
    batch_size: Annotated[
        int | None,
        typer.Option(
            "--batch-size",
            envvar="PURGECTL_BATCH_SIZE",
            help="Candidates per batch (default 500).",
        ),
    ] = None,
    max_duration: Annotated[
        float | None,
        typer.Option(
            "--max-duration",
            envvar="PURGECTL_MAX_DURATION",
            help="Stop consuming candidates after this many seconds.",
        ),
    ] = None,
    dry_run: Annotated[
        bool | None,
        typer.Option(
            "--dry-run/--no-dry-run",
            envvar="PURGECTL_DRY_RUN",
            help="Report what would be deleted without deleting.",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            envvar="PURGECTL_WORKERS",
            help="Parallel deletion workers (default 1).",
        ),
    ] = None,
    max_error_rate: Annotated[
        float | None,
        typer.Option(
            "--max-error-rate",
            envvar="PURGECTL_MAX_ERROR_RATE",
            help="Exit with code 3 when the error rate exceeds this fraction.",
        ),
    ] = None,
    no_history: Annotated[
        bool,
        typer.Option("--no-history", help="Do not record the run in the history file."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            envvar="PURGECTL_CONFIG",
            help="Config file (default ~/.config/purgectl/config.toml).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.JSON,
) -> None:
    """Run one deletion pass and report its summary.

    Exit codes: 0 success, 1 invalid scope or configuration,
    2 truncated by the duration budget or a cancellation signal,
    3 error rate above --max-error-rate.

    Examples:
        purgectl run -m /mnt/shared -t acme -x '*.log' --dry-run
        purgectl run -m /mnt/shared -t all --max-duration 3300 -w 8
    """
    overrides: dict[str, Any] = {
        "mount_path": mount_path,
        "tenants": tuple(tenants) if tenants else None,
        "exclude": tuple(exclude) if exclude else None,
        "batch_size": batch_size,
        "max_duration": max_duration,
        "dry_run": dry_run,
        "workers": workers,
        "max_error_rate": max_error_rate,
        "record_history": False if no_history else None,
    }

    try:
        config = build_config(overrides, config_path, require_file=config_path is not None)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FATAL) from None

    cancel_event = threading.Event()
    runner = DeletionRunner(config, cancel_event=cancel_event)

    with _cancel_on_signals(cancel_event):
        try:
            result = runner.run()
        except InvalidScopeError as e:
            print_error(str(e))
            raise typer.Exit(code=ExitCode.FATAL) from None

    if output_format == OutputFormat.JSON:
        emit(result.record)
    else:
        console.print(render_summary_table(result.summary))

    if config.record_history:
        _record_history(result, config)

    raise typer.Exit(code=int(result.exit_code))


@contextlib.contextmanager
def _cancel_on_signals(cancel_event: threading.Event) -> Iterator[None]:
    """Set the cancellation event on SIGTERM/SIGINT for the duration of a run.

    Signal handlers can only be installed from the main thread; elsewhere
    the run simply is not cancellable by signal.
    """

    def handler(signum: int, frame: FrameType | None) -> None:
        _ = frame
        logger.warning(
            "Received %s, finishing in-flight batches and stopping",
            signal.Signals(signum).name,
        )
        cancel_event.set()

    previous: dict[int, Any] = {}
    try:
        for sig in (signal.SIGTERM, signal.SIGINT):
            previous[sig] = signal.signal(sig, handler)
    except ValueError:
        logger.debug("Not in main thread, signal cancellation disabled")

    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def _record_history(result: RunResult, config: RunConfig) -> None:
    """Append the run to the history file without affecting the exit code."""
    record = create_run_record(
        roots=[str(root) for root in result.scope.roots],
        dry_run=config.dry_run,
        exit_code=int(result.exit_code),
        report=result.record,
    )
    try:
        StateManager().record_run(record)
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not record run to history: {e}")
