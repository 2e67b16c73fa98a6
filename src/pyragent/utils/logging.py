"""
Logging setup for the ``pyragent`` package logger.

Modules log through ``logging.getLogger(__name__)``; nothing is printed
until an application calls :func:`configure_logging` (or attaches its own
handlers to the ``pyragent`` logger).
"""

from __future__ import annotations

import logging
import sys
from typing import IO, TYPE_CHECKING

from pyragent.exceptions import ConfigError

if TYPE_CHECKING:
    from pyragent.utils.config import RAGConfig

PACKAGE_LOGGER = "pyragent"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_level(level: int | str) -> int:
    """
    Turn a level name or number into a logging level.

    Raises:
        ConfigError: If the name is not a standard level
    """
    if isinstance(level, int):
        return level
    try:
        return LEVELS[level.strip().upper()]
    except KeyError:
        raise ConfigError(f"Unknown log level: {level!r}") from None


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Logger name (usually __name__); names outside the package
            are nested under ``pyragent``

    Returns:
        Logger that propagates to the package logger
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int | str) -> None:
    """
    Set the package log level.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolve_level(level))


def configure_logging(
    config: "RAGConfig | None" = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """
    Attach one stream handler to the package logger and apply the level.

    Calling it again replaces the handler instead of adding another.

    Args:
        config: Configuration whose ``log_level`` is applied (INFO if None)
        stream: Output stream (default: stderr)

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(logger.handlers):
        if getattr(handler, "_pyragent_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._pyragent_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    logger.setLevel(resolve_level(config.log_level if config else "INFO"))
    return logger
