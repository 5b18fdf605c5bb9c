"""Logging setup for the CLI.

Library modules only create module-level loggers; the CLI attaches a
Rich handler on stderr so stdout stays reserved for the output record.
"""

import logging

from rich.logging import RichHandler

from purgectl.utils.formatting import err_console

_ROOT_LOGGER = "purgectl"


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Attach a Rich stderr handler to the purgectl logger.

    Safe to call more than once; a previously attached handler is replaced.

    Args:
        verbose: Log at DEBUG level.
        quiet: Log only warnings and errors. Ignored if verbose is set.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=err_console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
