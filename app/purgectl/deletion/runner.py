"""Deletion runner.

Wires the scope resolver, tree walker, batch deleter, and reporter into a
single pass: resolve -> walk and delete (interleaved, streaming) -> report.
Only an invalid scope fails the run; everything else degrades to a
partial summary.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from purgectl.core.config import RunConfig
from purgectl.deletion.deleter import BatchDeleter, Clock
from purgectl.deletion.errors import InvalidScopeError
from purgectl.deletion.models import ExitCode, RunSummary
from purgectl.deletion.reporter import report
from purgectl.deletion.scope import EligiblePredicate, Scope, resolve
from purgectl.deletion.walker import TreeWalker

logger = logging.getLogger(__name__)


class RunnerState(str, Enum):
    """Lifecycle of a DeletionRunner.

    Attributes:
        IDLE: Created, not started.
        RESOLVING: Resolving the configured scope.
        RUNNING: Walking and deleting.
        REPORTING: Building the output record.
        DONE: Finished; a summary is available.
        FAILED: Scope resolution failed; nothing was deleted.
    """

    IDLE = "idle"
    RESOLVING = "resolving"
    RUNNING = "running"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RunResult:
    """Outcome of a completed run.

    Attributes:
        scope: Resolved scope the run operated on.
        summary: Finalized run summary.
        record: Output record built from the summary.
        exit_code: Exit code for the external scheduler.
    """

    scope: Scope
    summary: RunSummary
    record: dict[str, Any]
    exit_code: ExitCode


def exit_code_for(summary: RunSummary, max_error_rate: float = 1.0) -> ExitCode:
    """Map a finalized summary onto a process exit code.

    Truncation takes precedence over the error-rate threshold.

    Args:
        summary: Finalized run summary.
        max_error_rate: Highest tolerated error rate.

    Returns:
        ExitCode for the run.
    """
    if summary.truncated:
        return ExitCode.TRUNCATED
    if summary.error_rate > max_error_rate:
        return ExitCode.ERROR_RATE_EXCEEDED
    return ExitCode.SUCCESS


class DeletionRunner:
    """Runs one scheduled deletion pass for a RunConfig.

    With ``config.workers > 1`` each root is split into its top-level
    sub-directories, which are handed to a thread pool. Every worker owns
    one subtree exclusively and returns its own summary; the summaries
    are merged once all workers have finished.

    Attributes:
        state: Current lifecycle state.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        clock: Clock = time.monotonic,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the DeletionRunner.

        Args:
            config: Immutable run configuration.
            clock: Monotonic clock for the duration budget and run timing.
            cancel_event: External cancellation signal (timeout or operator abort).
        """
        self._config = config
        self._clock = clock
        self._cancel_event = cancel_event or threading.Event()
        self.state = RunnerState.IDLE

    def cancel(self) -> None:
        """Request cancellation; in-flight batches finish, then the run stops."""
        self._cancel_event.set()

    def run(self) -> RunResult:
        """Execute the run.

        Returns:
            RunResult with the finalized summary, output record, and exit code.

        Raises:
            InvalidScopeError: If the scope cannot be resolved. No deletion
                has happened in that case.
        """
        start = self._clock()
        deadline: float | None = None
        if self._config.max_duration is not None:
            deadline = start + self._config.max_duration

        self.state = RunnerState.RESOLVING
        try:
            scope = resolve(self._config)
        except InvalidScopeError:
            self.state = RunnerState.FAILED
            raise

        self.state = RunnerState.RUNNING
        mode = "dry-run" if self._config.dry_run else "delete"
        logger.info(
            "Starting %s run over %d root(s) with %d worker(s)",
            mode,
            len(scope.roots),
            self._config.workers,
        )

        summary = RunSummary(dry_run=self._config.dry_run)
        for root in scope.roots:
            if self._config.workers > 1:
                summary.merge(self._run_parallel(root, scope.eligible, deadline))
            else:
                summary.merge(self._run_sequential(root, scope.eligible, deadline))
            if summary.truncated:
                break

        self.state = RunnerState.REPORTING
        summary.duration_ms = int((self._clock() - start) * 1000)
        record = report(summary)
        exit_code = exit_code_for(summary, self._config.max_error_rate)
        logger.info(
            "Run finished: %d file(s), %d dir(s), %d excluded, %d error(s)%s",
            summary.files_deleted,
            summary.directories_removed,
            summary.excluded_count,
            summary.error_count,
            " (truncated)" if summary.truncated else "",
        )

        self.state = RunnerState.DONE
        return RunResult(scope=scope, summary=summary, record=record, exit_code=exit_code)

    def _new_deleter(self) -> BatchDeleter:
        return BatchDeleter(
            batch_size=self._config.batch_size,
            dry_run=self._config.dry_run,
            clock=self._clock,
            cancel_event=self._cancel_event,
        )

    def _run_sequential(
        self, root: Path, eligible: EligiblePredicate, deadline: float | None
    ) -> RunSummary:
        deleter = self._new_deleter()
        walker = TreeWalker(on_error=deleter.record_traversal_error)
        return deleter.run(walker.walk(root), eligible, deadline=deadline)

    def _run_parallel(
        self, root: Path, eligible: EligiblePredicate, deadline: float | None
    ) -> RunSummary:
        deleter = self._new_deleter()
        walker = TreeWalker(on_error=deleter.record_traversal_error)
        subtrees, top_files = walker.partition(root)
        logger.debug("Split %s into %d subtree(s)", root, len(subtrees))

        summary = RunSummary(dry_run=self._config.dry_run)
        with ThreadPoolExecutor(
            max_workers=self._config.workers,
            thread_name_prefix="purgectl-worker",
        ) as pool:
            futures = [
                pool.submit(self._delete_subtree, top, eligible, deadline) for top in subtrees
            ]
            deleter.run(top_files, eligible, deadline=deadline)
            for future in as_completed(futures):
                summary.merge(future.result())

        summary.merge(deleter.summary)
        return summary

    def _delete_subtree(
        self, top: Path, eligible: EligiblePredicate, deadline: float | None
    ) -> RunSummary:
        deleter = self._new_deleter()
        walker = TreeWalker(on_error=deleter.record_traversal_error)
        return deleter.run(walker.walk_subtree(top), eligible, deadline=deadline)
