"""Console logging for the wigen CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "wigen"


def setup_logging(level: str | int = logging.WARNING) -> None:
    """Route ``wigen.*`` loggers to a Rich handler on stderr.

    Safe to call repeatedly; the previous handler is replaced, never stacked.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
