"""Application logger.

Modules log through logging.getLogger(__name__); everything under the
"scripthub" namespace ends up in the handlers configured here.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from scripthub.utils.environment import is_debug, is_test

LOGGER_NAME = "scripthub"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _default_log_file() -> str:
    # No file under the test suite unless LOG_FILE asks for one
    return os.getenv("LOG_FILE", "" if is_test() else "logs/scripthub.log")


def _file_handler(log_file: str) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )


def setup_logger(
    name: str = LOGGER_NAME,
    log_file: str | None = None,
    log_level: str | None = None,
) -> logging.Logger:
    """Configure the logger once and return it.

    Level comes from LOG_LEVEL (DEBUG locally, INFO elsewhere). Output goes
    to stdout and, when a log file is configured, a rotating file.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    level_name = log_level or os.getenv("LOG_LEVEL", "DEBUG" if is_debug() else "INFO")
    level = getattr(logging, level_name.upper(), logging.INFO)
    log.setLevel(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    file_error = None
    log_file = _default_log_file() if log_file is None else log_file
    if log_file:
        try:
            handlers.append(_file_handler(log_file))
        except OSError as e:
            file_error = e

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        log.addHandler(handler)

    if file_error is not None:
        log.warning(f"Logging to stdout only, can't open {log_file}: {file_error}")

    log.propagate = False
    return log


logger = setup_logger()
