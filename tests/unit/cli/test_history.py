"""Unit tests for history command.

Tests for the CLI history command implementation.
"""

import json

import pytest
from purgectl.cli.commands.history import _format_timestamp
from purgectl.cli.main import app
from purgectl.core.state import StateManager
from purgectl.models.history import RunRecord
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def recorded_runs() -> list[RunRecord]:
    """Write sample run records to the (isolated) history file."""
    records = [
        RunRecord(
            id="abc123456789",
            timestamp="2026-01-26T02:00:00+00:00",
            roots=("/mnt/shared/acme",),
            dry_run=False,
            exit_code=0,
            report={"filesDeleted": 120, "bytesFreed": 2048, "errorCount": 0},
        ),
        RunRecord(
            id="def678901234",
            timestamp="2026-01-27T02:00:00+00:00",
            roots=("/mnt/shared/a", "/mnt/shared/b", "/mnt/shared/c"),
            dry_run=True,
            exit_code=2,
            report={"filesDeleted": 7, "bytesFreed": 0, "errorCount": 3},
        ),
    ]
    manager = StateManager()
    for record in records:
        manager.record_run(record)
    return records


class TestHistoryCommand:
    """Tests for purgectl history command."""

    def test_history_help(self) -> None:
        """History command shows help."""
        result = runner.invoke(app, ["history", "--help"])

        assert result.exit_code == 0
        assert "--limit" in result.stdout
        assert "--json" in result.stdout

    def test_history_empty(self) -> None:
        """History shows a message when nothing was recorded."""
        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "No runs recorded yet" in result.stdout

    def test_history_table(self, recorded_runs: list[RunRecord]) -> None:
        """History renders recorded runs as a table."""
        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "Deletion Runs" in result.stdout
        assert "abc12345" in result.stdout
        assert "def67890" in result.stdout

    def test_history_json_newest_first(self, recorded_runs: list[RunRecord]) -> None:
        """--json prints records newest first."""
        result = runner.invoke(app, ["history", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [d["id"] for d in data] == ["def678901234", "abc123456789"]
        assert data[0]["report"]["errorCount"] == 3

    def test_history_limit(self, recorded_runs: list[RunRecord]) -> None:
        """--limit caps the number of runs shown."""
        result = runner.invoke(app, ["history", "--json", "-n", "1"])

        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == 1


class TestFormatTimestamp:
    """Tests for _format_timestamp helper."""

    def test_iso_timestamp(self) -> None:
        assert _format_timestamp("2026-01-26T14:30:00+00:00") == "2026-01-26 14:30"

    def test_invalid_timestamp(self) -> None:
        assert _format_timestamp("yesterday at noon") == "yesterday at noo"
