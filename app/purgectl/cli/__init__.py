"""CLI package for purgectl.

This package contains the Typer application and all subcommands.
"""

from purgectl.cli.main import app

__all__ = ["app"]
