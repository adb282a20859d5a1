"""
Logging setup with Rich formatting.

Library modules only create loggers; handlers are installed here by the
CLI (or an embedding application) on the ``flowscribe`` logger.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from flowscribe.config.models import LoggingConfig

PACKAGE_LOGGER = "flowscribe"


def configure_logging(
    config: Optional[LoggingConfig] = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Install console (and optional file) handlers on the package logger.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        config: Logging settings (defaults when omitted)
        verbose: Force DEBUG level
        console: Rich console for the console handler

    Returns:
        The configured ``flowscribe`` logger
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.value)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    logger.setLevel(level)
    return logger
