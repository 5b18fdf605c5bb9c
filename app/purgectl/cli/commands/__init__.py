"""CLI commands for purgectl.

This package contains all subcommand implementations.
"""

from purgectl.cli.commands import config, history, run

__all__ = ["config", "history", "run"]
