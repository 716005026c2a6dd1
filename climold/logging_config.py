"""
Logging setup for climold.

Library modules only call ``get_logger(__name__)``; handlers are installed
once by the command-line entry point through ``configure_logging``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "climold"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the climold namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: int = logging.WARNING,
    console: Optional[Console] = None,
    show_path: bool = False,
) -> logging.Logger:
    """
    Install a rich handler on the package logger.

    Calling it again replaces the previously installed handler.

    Args:
        level: Minimum level to emit
        console: Console to log to; stderr when omitted
        show_path: Show the emitting module and line

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=show_path,
        show_time=level <= logging.DEBUG,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
