"""Logging setup for the command-line interface.

Library modules only create loggers; handlers are installed here, once, by
the CLI.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from leakscope.output.rich import err_console

LOGGER_NAME = "leakscope"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a rich handler to the package logger.

    Args:
        verbose: Log at DEBUG instead of WARNING.

    Returns:
        The ``leakscope`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=err_console, show_path=verbose, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
