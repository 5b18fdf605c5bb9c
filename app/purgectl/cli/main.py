"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from purgectl import __version__
from purgectl.cli.commands import config, history, run
from purgectl.utils.logs import configure_logging

# Create main Typer app
app = typer.Typer(
    name="purgectl",
    help="Scheduled, scoped, auditable bulk deletion for shared file systems.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"purgectl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log warnings and errors.",
        ),
    ] = False,
) -> None:
    """purgectl - Scheduled bulk deletion for shared file systems.

    Meant to be triggered by an external scheduler (cron, CronJob). Each
    invocation deletes everything in scope that is not excluded and
    reports one JSON summary.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


# Register commands
app.add_typer(run.app, name="run")
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
