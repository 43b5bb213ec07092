"""
Logging setup shared by the client, the CLI and the tests

Timestamps are UTC. Loggers are named after the class that logs, optionally qualified by the component instance,
e.g., `TransactionOrchestrator.swap`.
"""

import logging
import time
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(
    level: int | str = logging.WARNING,
    handlers: list[logging.Handler] | None = None,
):
    """
    Replaces any existing root configuration.

    :param level: numeric level or one of `LOG_LEVELS`

    >>> configure_logging(level="DEBUG")
    >>> get_logger(object(), "swap").info("state transition: IDLE -> SUBMITTING") # doctest: +SKIP
    2026-10-19 14:48:20,594 [INFO] [object.swap] state transition: IDLE -> SUBMITTING
    """
    if isinstance(level, str):
        level = log_level(level)
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(format=LOG_FORMAT, level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)


def log_level(name: str) -> int:
    """
    :raises ValueError: if the name is not one of `LOG_LEVELS`, case-insensitive
    """
    if name.upper() not in LOG_LEVELS:
        raise ValueError(f"invalid log level: {name!r} - expected one of {LOG_LEVELS}")
    return logging.getLevelName(name.upper())


def get_logger(obj: Any, name: str | None = None) -> logging.Logger:
    """
    :param name: appended to the class name, i.e., `{obj.__class__.__name__}.{name}`
    """
    logger = logging.getLogger(obj.__class__.__name__)
    return logger if name is None else logger.getChild(name)
