"""Batch deleter for walker candidates.

Consumes a post-order candidate stream in bounded batches and deletes
eligible entries one at a time: files with a single unlink, directories
with a single rmdir that only succeeds when they are empty. Every
per-path failure is recorded in the RunSummary and never stops the run.

Deletion never resolves a full path. The parent of each entry is reached
by opening every component below the walk root with O_NOFOLLOW, and the
entry is removed relative to that descriptor, so a directory swapped for
a symlink mid-run cannot redirect a deletion outside the tree.
"""

import logging
import os
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from purgectl.core.config import DEFAULT_BATCH_SIZE
from purgectl.deletion.errors import BudgetExceeded, DeletionError, TraversalError
from purgectl.deletion.models import CandidateEntry, EntryType, ErrorKind, RunSummary
from purgectl.deletion.scope import EligiblePredicate
from purgectl.deletion.walker import DIR_OPEN_FLAGS

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class BatchDeleter:
    """Deletes candidate entries in batches and accounts for every outcome.

    A BatchDeleter accumulates into a single RunSummary across run()
    calls. It is not thread-safe; parallel workers each own one.

    Directories that still hold something (an excluded file, a failed
    deletion, an unreadable subtree) are counted as retained without an
    rmdir attempt, since the walker yields them after all their children.

    Attributes:
        summary: Summary accumulated so far.
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        dry_run: bool = False,
        *,
        clock: Clock = time.monotonic,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the BatchDeleter.

        Args:
            batch_size: Maximum number of candidates per batch.
            dry_run: If True, count would-be deletions without touching anything.
            clock: Monotonic clock used for the duration budget.
            cancel_event: When set, the deleter stops consuming candidates.
        """
        if batch_size < 1:
            msg = f"Batch size must be at least 1, got {batch_size}"
            raise ValueError(msg)
        self._batch_size = batch_size
        self._dry_run = dry_run
        self._clock = clock
        self._cancel_event = cancel_event
        self._retained: set[Path] = set()
        self._dir_fds: dict[Path, int] = {}
        self.summary = RunSummary(dry_run=dry_run)

    def run(
        self,
        candidates: Iterable[CandidateEntry],
        eligible: EligiblePredicate,
        *,
        deadline: float | None = None,
    ) -> RunSummary:
        """Delete eligible candidates batch by batch.

        Before each candidate is pulled the deadline and the cancellation
        event are checked. When either trips, no further candidates are
        consumed, the in-flight batch is finished, and the summary is
        marked truncated.

        Args:
            candidates: Post-order candidate stream.
            eligible: Predicate deciding whether a path may be deleted.
            deadline: Clock value after which no more candidates are consumed.

        Returns:
            The accumulated RunSummary.
        """
        batch: list[CandidateEntry] = []
        try:
            try:
                for candidate in self._consume(candidates, deadline):
                    batch.append(candidate)
                    if len(batch) >= self._batch_size:
                        self._process_batch(tuple(batch), eligible)
                        batch = []
            except BudgetExceeded as e:
                logger.warning("Stopping early: %s", e)
                self.summary.truncated = True
                self.summary.cancelled = self.summary.cancelled or e.cancelled

            if batch:
                self._process_batch(tuple(batch), eligible)
        finally:
            self._close_all()

        return self.summary

    def record_traversal_error(self, error: TraversalError) -> None:
        """Record a skipped subtree and keep its parent directory.

        Intended as the TreeWalker ``on_error`` callback.
        """
        logger.warning("Skipping unreadable subtree %s: %s", error.path, error.message)
        self.summary.errors.append(error.to_record())
        self._retain(Path(error.path))

    def _consume(
        self, candidates: Iterable[CandidateEntry], deadline: float | None
    ) -> Iterator[CandidateEntry]:
        iterator = iter(candidates)
        while True:
            self._check_budget(deadline)
            candidate = next(iterator, None)
            if candidate is None:
                return
            yield candidate

    def _check_budget(self, deadline: float | None) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise BudgetExceeded("cancellation requested", cancelled=True)
        if deadline is not None and self._clock() > deadline:
            raise BudgetExceeded("run-duration budget exhausted")

    def _process_batch(
        self, batch: tuple[CandidateEntry, ...], eligible: EligiblePredicate
    ) -> None:
        self.summary.batches += 1
        logger.debug("Processing batch %d (%d entries)", self.summary.batches, len(batch))
        for candidate in batch:
            if candidate.is_dir:
                self._process_directory(candidate, eligible)
            else:
                self._process_file(candidate, eligible)

    def _process_file(self, candidate: CandidateEntry, eligible: EligiblePredicate) -> None:
        self.summary.files_seen += 1

        if not eligible(candidate.path):
            self.summary.excluded_count += 1
            self._retain(candidate.path)
            return

        if self._dry_run:
            logger.info("Dry-run: would delete %s", candidate.path)
        else:
            try:
                os.unlink(candidate.path.name, dir_fd=self._parent_fd(candidate))
            except OSError as e:
                self._record_failure(DeletionError.from_os_error(candidate.path, e))
                return

        self.summary.files_deleted += 1
        self.summary.bytes_freed += candidate.size_bytes

    def _process_directory(self, candidate: CandidateEntry, eligible: EligiblePredicate) -> None:
        # Every descendant has been processed by now
        self._close_dir(candidate.path)

        if candidate.path in self._retained or not eligible(candidate.path):
            self._retained.discard(candidate.path)
            self.summary.directories_retained += 1
            self._retain(candidate.path)
            return

        if self._dry_run:
            logger.info("Dry-run: would remove directory %s", candidate.path)
        else:
            try:
                os.rmdir(candidate.path.name, dir_fd=self._parent_fd(candidate))
            except OSError as e:
                self._record_failure(
                    DeletionError.from_os_error(candidate.path, e, EntryType.DIRECTORY)
                )
                return

        self.summary.directories_removed += 1

    def _record_failure(self, error: DeletionError) -> None:
        logger.warning("Failed to delete %s: %s", error.path, error.message)
        self.summary.errors.append(error.to_record())
        # A vanished entry no longer keeps its parent non-empty
        if error.kind != ErrorKind.NOT_FOUND:
            self._retain(Path(error.path))

    def _retain(self, path: Path) -> None:
        self._retained.add(path.parent)

    def _parent_fd(self, candidate: CandidateEntry) -> int:
        """Open the candidate's parent directory component by component from its root.

        Descriptors are cached per directory until that directory itself is
        processed or the run ends.

        Raises:
            OSError: If a component cannot be opened, including when it is
                no longer a real directory.
        """
        parent = candidate.path.parent
        fd = self._dir_fds.get(parent)
        if fd is not None:
            return fd

        root = candidate.root
        fd = self._dir_fds.get(root)
        if fd is None:
            fd = os.open(root, DIR_OPEN_FLAGS)
            self._dir_fds[root] = fd

        directory = root
        for part in parent.relative_to(root).parts:
            directory = directory / part
            child_fd = self._dir_fds.get(directory)
            if child_fd is None:
                child_fd = os.open(part, DIR_OPEN_FLAGS, dir_fd=fd)
                self._dir_fds[directory] = child_fd
            fd = child_fd
        return fd

    def _close_dir(self, path: Path) -> None:
        fd = self._dir_fds.pop(path, None)
        if fd is not None:
            os.close(fd)

    def _close_all(self) -> None:
        for fd in self._dir_fds.values():
            os.close(fd)
        self._dir_fds.clear()
