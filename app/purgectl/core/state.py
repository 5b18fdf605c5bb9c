"""State management for run history.

This module provides the StateManager class for persisting and querying
run records in a JSONL file.
"""

import json
import logging
from pathlib import Path

from purgectl.core.paths import ensure_state_dir, get_state_dir
from purgectl.models.history import RunRecord

logger = logging.getLogger(__name__)


class StateManager:
    """Manages run history in a JSONL file.

    Storage location: ~/.local/state/purgectl/history.jsonl

    Each line is a complete JSON object representing a RunRecord, so
    concurrent scheduled runs only ever append.

    Attributes:
        state_dir: Directory containing the history file.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/purgectl
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to the history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_run(self, record: RunRecord) -> None:
        """Append a run record to the history file.

        Creates the file and parent directories if they don't exist.

        Args:
            record: The run record to append.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(record.to_json_line() + "\n")
            f.flush()

    def get_history(self, limit: int | None = None) -> list[RunRecord]:
        """Read run records, newest first.

        Corrupt lines are skipped with a warning.

        Args:
            limit: Maximum number of records to return. If None, returns all.

        Returns:
            List of RunRecord, newest first. Empty if the file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        records: list[RunRecord] = []

        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    records.append(RunRecord.from_json_line(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
                    continue

        records.reverse()

        if limit is not None:
            return records[:limit]

        return records
