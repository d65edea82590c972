"""Logging setup for the type_diagnosis package.

Routes the package logger through a Rich console handler on stderr. Library
code only ever calls ``logging.getLogger(__name__)``; handlers are installed
by entry points such as the CLI.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom theme for log levels
_LOG_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "log.time": "dim",
    "log.path": "dim",
})

_console = Console(theme=_LOG_THEME, stderr=True)

ROOT_LOGGER_NAME = "type_diagnosis"


def setup_logging(level: str = "WARNING", show_path: bool = False) -> logging.Logger:
    """Configure the package logger. Safe to call more than once.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        show_path: Show the emitting module and line in each record

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=_console,
            show_path=show_path,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
