"""Unit tests for StateManager.

Tests for the StateManager class that handles run history persistence.
"""

import json
import logging
from pathlib import Path

import pytest
from purgectl.core.state import StateManager
from purgectl.models.history import RunRecord, create_run_record


def _record(files_deleted: int = 1, exit_code: int = 0) -> RunRecord:
    return create_run_record(
        roots=["/mnt/shared/acme"],
        dry_run=False,
        exit_code=exit_code,
        report={"filesDeleted": files_deleted, "errorCount": 0},
    )


class TestStateManagerInit:
    """Tests for StateManager initialization."""

    def test_init_with_default_state_dir(self) -> None:
        """StateManager uses default state directory when none provided."""
        manager = StateManager()
        assert manager._state_dir is not None

    def test_history_path_property(self, tmp_path: Path) -> None:
        """history_path returns correct path."""
        manager = StateManager(state_dir=tmp_path)
        assert manager.history_path == tmp_path / "history.jsonl"


class TestRecordRun:
    """Tests for StateManager.record_run method."""

    @pytest.fixture
    def manager(self, tmp_path: Path) -> StateManager:
        """Create a StateManager with temporary directory."""
        return StateManager(state_dir=tmp_path)

    def test_record_run_creates_directories(self, tmp_path: Path) -> None:
        """record_run creates parent directories if needed."""
        nested_dir = tmp_path / "deep" / "nested" / "state"
        manager = StateManager(state_dir=nested_dir)

        manager.record_run(_record())

        assert manager.history_path.exists()

    def test_record_run_appends_json_lines(self, manager: StateManager) -> None:
        """Each run is appended as its own JSON line."""
        first = _record(files_deleted=1)
        second = _record(files_deleted=2, exit_code=2)

        manager.record_run(first)
        manager.record_run(second)

        content = manager.history_path.read_text(encoding="utf-8")
        assert content.endswith("\n")
        lines = content.strip().split("\n")
        assert [json.loads(line)["id"] for line in lines] == [first.id, second.id]
        assert json.loads(lines[1])["report"]["filesDeleted"] == 2


class TestGetHistory:
    """Tests for StateManager.get_history method."""

    @pytest.fixture
    def manager(self, tmp_path: Path) -> StateManager:
        """Create a StateManager with temporary directory."""
        return StateManager(state_dir=tmp_path)

    def test_get_history_missing_file(self, manager: StateManager) -> None:
        """get_history returns empty list when file doesn't exist."""
        assert manager.get_history() == []

    def test_get_history_newest_first(self, manager: StateManager) -> None:
        """get_history returns records newest first."""
        records = [_record(files_deleted=i) for i in range(3)]
        for record in records:
            manager.record_run(record)

        result = manager.get_history()

        assert [r.id for r in result] == [r.id for r in reversed(records)]

    def test_get_history_with_limit(self, manager: StateManager) -> None:
        """get_history respects limit parameter."""
        for i in range(5):
            manager.record_run(_record(files_deleted=i))

        result = manager.get_history(limit=2)

        assert len(result) == 2
        assert result[0].report["filesDeleted"] == 4

    def test_get_history_skips_corrupt_lines(
        self, manager: StateManager, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Corrupt lines are skipped with a warning."""
        good = _record()
        manager.record_run(good)
        with manager.history_path.open("a", encoding="utf-8") as f:
            f.write("not json\n")
            f.write('{"id": "x"}\n')
            f.write("\n")

        with caplog.at_level(logging.WARNING):
            result = manager.get_history()

        assert [r.id for r in result] == [good.id]
        assert "Skipping corrupt history line 2" in caplog.text
        assert "Skipping corrupt history line 3" in caplog.text
