"""Exception taxonomy for deletion runs.

Only InvalidScopeError escapes a run. The remaining errors are raised and
caught inside the pipeline and end up as ErrorRecord entries in the
RunSummary, or as the truncated flag in the case of BudgetExceeded.
"""

import errno
from pathlib import Path

from purgectl.deletion.models import EntryType, ErrorKind, ErrorRecord, ErrorStage


class PurgeError(Exception):
    """Base exception for deletion run errors."""


class InvalidScopeError(PurgeError):
    """Raised when the configured scope cannot be resolved safely.

    Covers a missing mount root, a tenant that escapes the mount root,
    and a tenant directory that does not exist.
    """


class BudgetExceeded(PurgeError):
    """Raised inside the deleter when the run has to stop early."""

    def __init__(self, reason: str, *, cancelled: bool = False) -> None:
        super().__init__(reason)
        self.cancelled = cancelled


class TraversalError(PurgeError):
    """A directory could not be listed; its subtree is skipped.

    Attributes:
        path: Directory (or entry) that could not be read.
        kind: Categorized error kind.
        message: OS error message.
    """

    def __init__(self, path: Path | str, kind: ErrorKind, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = str(path)
        self.kind = kind
        self.message = message

    @classmethod
    def from_os_error(cls, path: Path | str, exc: OSError) -> "TraversalError":
        """Build the error from an OSError, classifying its kind."""
        return cls(path, classify_os_error(exc), exc.strerror or str(exc))

    def to_record(self) -> ErrorRecord:
        """Convert to the record stored in a RunSummary."""
        return ErrorRecord(
            path=self.path,
            kind=self.kind,
            message=self.message,
            stage=ErrorStage.TRAVERSAL,
        )


class DeletionError(PurgeError):
    """A single entry could not be deleted; it is left in place.

    Attributes:
        path: Path whose deletion failed.
        kind: Categorized error kind.
        message: OS error message.
        entry_type: Whether a file or a directory was being removed.
    """

    def __init__(
        self,
        path: Path | str,
        kind: ErrorKind,
        message: str,
        entry_type: EntryType = EntryType.FILE,
    ) -> None:
        super().__init__(f"{path}: {message}")
        self.path = str(path)
        self.kind = kind
        self.message = message
        self.entry_type = entry_type

    @classmethod
    def from_os_error(
        cls, path: Path | str, exc: OSError, entry_type: EntryType = EntryType.FILE
    ) -> "DeletionError":
        """Build the error from an OSError, classifying its kind."""
        return cls(path, classify_os_error(exc), exc.strerror or str(exc), entry_type)

    def to_record(self) -> ErrorRecord:
        """Convert to the record stored in a RunSummary."""
        return ErrorRecord(
            path=self.path,
            kind=self.kind,
            message=self.message,
            stage=ErrorStage.DELETION,
            entry_type=self.entry_type,
        )


def classify_os_error(exc: OSError) -> ErrorKind:
    """Map an OSError onto the error kinds reported in run summaries."""
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    # ENOTEMPTY on Linux, EEXIST on some NFS servers
    if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
        return ErrorKind.NOT_EMPTY
    return ErrorKind.OTHER
