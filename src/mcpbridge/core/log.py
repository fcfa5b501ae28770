"""Logging setup for the ``mcpbridge`` logger tree."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from mcpbridge.config.schema import LoggingConfig

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(config: LoggingConfig, *, verbose: bool = False) -> logging.Logger:
    """Configure the ``mcpbridge`` logger from *config*.

    Logs go to ``config.file`` when set, otherwise to stderr through rich.
    Calling this again replaces the handler installed previously.
    """
    logger = logging.getLogger("mcpbridge")
    level = "DEBUG" if verbose else config.level.upper()
    logger.setLevel(level)

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handler: logging.Handler
    if config.file:
        handler = logging.FileHandler(config.file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
