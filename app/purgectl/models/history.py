"""Run history model.

This module defines the record appended to the history file after every
deletion run, giving an audit trail of what each scheduled invocation did.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class RunRecord:
    """Record of a single completed deletion run.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 format with timezone).
        roots: Scope roots the run deleted beneath.
        dry_run: Whether the run was a dry run.
        exit_code: Process exit code reported to the scheduler.
        report: Output record of the run (see purgectl.deletion.reporter).
    """

    id: str
    timestamp: str
    roots: tuple[str, ...]
    dry_run: bool
    exit_code: int
    report: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "Run record ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "roots": list(self.roots),
            "dry_run": self.dry_run,
            "exit_code": self.exit_code,
            "report": self.report,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunRecord":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            roots=tuple(data["roots"]),
            dry_run=bool(data.get("dry_run", False)),
            exit_code=int(data["exit_code"]),
            report=data.get("report", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "RunRecord":
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_run_record(
    roots: list[str],
    dry_run: bool,
    exit_code: int,
    report: dict[str, Any],
) -> RunRecord:
    """Factory function to create a new RunRecord.

    Automatically generates a unique ID and current timestamp.
    """
    return RunRecord(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        roots=tuple(roots),
        dry_run=dry_run,
        exit_code=exit_code,
        report=report,
    )
