"""Config commands.

Provides commands to show the file configuration and to write a
starter config file for scheduled runs.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from purgectl.core.config import (
    ConfigError,
    ConfigNotFoundError,
    RunConfig,
    load_config_file,
    save_config,
)
from purgectl.core.paths import get_config_path
from purgectl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize the run configuration file.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to show."),
    ] = None,
) -> None:
    """Show the values set in the config file."""
    path = config_path or get_config_path()
    try:
        data = load_config_file(path)
    except ConfigNotFoundError:
        print_info(f"No config file at {path}. Run 'purgectl config init' to create one.")
        return
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    table = Table(title=f"Config ({path})", show_lines=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def init(
    mount_path: Annotated[
        Path,
        typer.Option("--mount-path", "-m", help="Root of the mounted file system."),
    ],
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Where to write the config file."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with default settings for the given mount path."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(RunConfig(mount_path=mount_path), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    print_success(f"Config written to {saved}")
