"""Deletion domain models.

This module defines the data structures flowing through a deletion run:
candidate entries discovered by the walker, per-path error records, the
accumulated run summary, and the process exit codes derived from it.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path


class EntryType(str, Enum):
    """Type of a candidate entry.

    Attributes:
        FILE: Anything that is not a real directory, symlinks included.
        DIRECTORY: A real directory (never a symlink to one).
    """

    FILE = "file"
    DIRECTORY = "directory"


class ErrorKind(str, Enum):
    """Category of a per-path failure.

    Attributes:
        PERMISSION_DENIED: The process lacks permission for the operation.
        NOT_FOUND: The path vanished before it could be processed.
        NOT_EMPTY: A directory still had children when rmdir was attempted.
        OTHER: Any other OS-level failure.
    """

    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    NOT_EMPTY = "not_empty"
    OTHER = "other"


class ErrorStage(str, Enum):
    """Pipeline stage where an error was recorded."""

    TRAVERSAL = "traversal"
    DELETION = "deletion"


class ExitCode(IntEnum):
    """Process exit codes reported to the external scheduler."""

    SUCCESS = 0
    FATAL = 1
    TRUNCATED = 2
    ERROR_RATE_EXCEEDED = 3


@dataclass(frozen=True, slots=True)
class CandidateEntry:
    """A filesystem entry discovered by traversal and considered for deletion.

    Attributes:
        path: Absolute path of the entry.
        entry_type: File or directory.
        root: Directory the walk started from. Deletion reopens every
            component between root and the entry without following links.
        size_bytes: Size from lstat, 0 when unavailable. Reporting only.
        is_symlink: True if the entry is a symbolic link (never followed).
    """

    path: Path
    entry_type: EntryType
    root: Path
    size_bytes: int = 0
    is_symlink: bool = False

    @property
    def is_dir(self) -> bool:
        """Check if the entry is a directory."""
        return self.entry_type == EntryType.DIRECTORY


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """A single per-path failure recorded in a run summary.

    Attributes:
        path: Path that failed.
        kind: Categorized error kind.
        message: Human-readable error message from the OS.
        stage: Whether the failure happened while walking or deleting.
        entry_type: Type of the entry whose deletion failed (None for
            traversal errors).
    """

    path: str
    kind: ErrorKind
    message: str
    stage: ErrorStage = ErrorStage.DELETION
    entry_type: EntryType | None = None

    def to_dict(self) -> dict[str, str]:
        """Serialize to the output record shape."""
        return {"path": self.path, "kind": self.kind.value, "message": self.message}


@dataclass(slots=True)
class RunSummary:
    """Accumulated accounting of one deletion run.

    Built incrementally by the deleter and finalized by the runner.
    Counters always equal the sum of per-batch outcomes.

    Attributes:
        files_seen: File candidates consumed from the walker.
        files_deleted: Files unlinked (or that would be, in dry-run).
        directories_removed: Directories removed (or that would be).
        directories_retained: Directories left in place because something
            beneath them was kept or they matched an exclusion.
        bytes_freed: Sum of sizes of deleted files.
        excluded_count: Files skipped by an exclusion pattern.
        errors: Per-path error records, traversal and deletion.
        truncated: True if the run stopped before the walk was exhausted.
        cancelled: True if truncation came from a cancellation request.
        dry_run: True if nothing was actually deleted.
        duration_ms: Wall-clock duration, set when the run is finalized.
        batches: Number of batches processed.
    """

    files_seen: int = 0
    files_deleted: int = 0
    directories_removed: int = 0
    directories_retained: int = 0
    bytes_freed: int = 0
    excluded_count: int = 0
    errors: list[ErrorRecord] = field(default_factory=lambda: [])
    truncated: bool = False
    cancelled: bool = False
    dry_run: bool = False
    duration_ms: int = 0
    batches: int = 0

    @property
    def error_count(self) -> int:
        """Total number of recorded errors."""
        return len(self.errors)

    @property
    def file_error_count(self) -> int:
        """Number of failed file deletion attempts."""
        return sum(
            1
            for e in self.errors
            if e.stage == ErrorStage.DELETION and e.entry_type == EntryType.FILE
        )

    @property
    def error_rate(self) -> float:
        """Fraction of processed paths that ended in an error (0.0 when nothing was processed).

        Traversal errors count as failures alongside failed deletions.
        """
        failed = self.error_count
        processed = self.files_deleted + self.directories_removed + failed
        if processed == 0:
            return 0.0
        return failed / processed

    def merge(self, other: "RunSummary") -> None:
        """Fold another summary's outcomes into this one.

        Used as the single aggregation point for parallel workers.
        Durations are not merged; the runner sets the wall-clock total.
        """
        self.files_seen += other.files_seen
        self.files_deleted += other.files_deleted
        self.directories_removed += other.directories_removed
        self.directories_retained += other.directories_retained
        self.bytes_freed += other.bytes_freed
        self.excluded_count += other.excluded_count
        self.errors.extend(other.errors)
        self.truncated = self.truncated or other.truncated
        self.cancelled = self.cancelled or other.cancelled
        self.batches += other.batches
