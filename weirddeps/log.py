"""Logging setup shared by the CLI and the pipeline."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(console: Console, verbose: bool = False) -> None:
    """Route the ``weirddeps`` loggers through rich.

    Log lines share the console with live progress bars, so they are
    printed above the bar instead of tearing it.

    Args:
        console: Console the progress bars render on
        verbose: Enable DEBUG output
    """
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("weirddeps")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
