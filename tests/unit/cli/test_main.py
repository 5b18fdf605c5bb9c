"""Unit tests for the main CLI application."""

import logging

from purgectl import __version__
from purgectl.cli.main import app
from rich.logging import RichHandler
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"purgectl version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        """--help lists the available commands."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("run", "history", "config"):
            assert command in result.stdout

    def test_verbose_sets_debug_level(self) -> None:
        """-v switches the purgectl logger to DEBUG with a single Rich handler."""
        runner.invoke(app, ["-v", "history"])
        runner.invoke(app, ["-v", "history"])

        logger = logging.getLogger("purgectl")
        assert logger.level == logging.DEBUG
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_quiet_sets_warning_level(self) -> None:
        """-q limits logging to warnings and errors."""
        runner.invoke(app, ["-q", "history"])

        assert logging.getLogger("purgectl").level == logging.WARNING
