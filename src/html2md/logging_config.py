"""Log output for the html2md command line."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "html2md"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _level_of(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def _remove_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Route html2md log records to stderr and, optionally, a UTF-8 log file.

    Markdown can go to stdout, so nothing is ever logged there. Records stop
    at the ``html2md`` logger and never reach the root logger.

    Calling again without ``force`` only changes the level of the handlers
    already installed; ``force`` closes them and starts over.

    Args:
        level: Level name (DEBUG, INFO, ...) or number; unknown names mean INFO
        log_file: File that receives the same records as stderr
        format_string: Format for every handler, DEFAULT_FORMAT when None
        force: Replace existing handlers

    Returns:
        The ``html2md`` logger
    """
    numeric_level = _level_of(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    logger.setLevel(numeric_level)

    if logger.handlers and not force:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        return logger

    _remove_handlers(logger)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
