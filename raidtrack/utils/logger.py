"""Logging setup for the RaidTrack bot."""

import logging
import sys
from pathlib import Path
from typing import List, Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers routed through the same handlers at their own level.
LIBRARY_LOGGERS = ("discord", "aiosqlite")


def _level(value: str) -> int:
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handlers(log_file: Optional[str], formatter: logging.Formatter) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    name: str = "raidtrack",
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    library_level: str = "WARNING",
) -> logging.Logger:
    """
    Set up the bot logger and route library loggers to the same output.

    Child loggers (``raidtrack.reconciler``, ``raidtrack.ingest`` ...)
    inherit the handlers. The logger does not propagate to the root logger,
    so run the bot with ``log_handler=None`` to avoid duplicate lines.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        log_format: Log message format
        library_level: Level for discord.py and aiosqlite output

    Returns:
        Configured logger instance
    """
    formatter = logging.Formatter(log_format or DEFAULT_FORMAT)
    handlers = _build_handlers(log_file, formatter)

    logger = logging.getLogger(name)
    logger.setLevel(_level(level))
    logger.handlers.clear()
    logger.propagate = False
    for handler in handlers:
        logger.addHandler(handler)

    for library in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(library)
        library_logger.setLevel(_level(library_level))
        library_logger.handlers.clear()
        library_logger.propagate = False
        for handler in handlers:
            library_logger.addHandler(handler)

    return logger
