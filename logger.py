"""
Logging setup shared by every module of the party sync client.

Console gets short lines at the configured level; polling runs every few
seconds, so the optional log file is where DEBUG detail ends up.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# (format, datefmt) per destination
_FORMATS = {
    'console': ('%(asctime)s - %(levelname)s - %(message)s', '%H:%M:%S'),
    'file': ('%(asctime)s - %(name)s - %(levelname)s - %(message)s', '%Y-%m-%d %H:%M:%S'),
}


def _handler(handler: logging.Handler, kind: str, level: int) -> logging.Handler:
    fmt, datefmt = _FORMATS[kind]
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return _handler(logging.FileHandler(path, encoding='utf-8'), 'file', logging.DEBUG)


def setup_logger(name: str, log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Named logger with a stdout handler and, when log_file is set, a DEBUG file handler.

    Calling it again for the same name returns the logger untouched.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    # The logger itself must let DEBUG through when a file wants it
    logger.setLevel(min(level, logging.DEBUG) if log_file else level)
    logger.addHandler(_handler(logging.StreamHandler(sys.stdout), 'console', level))
    if log_file:
        logger.addHandler(_file_handler(log_file))
    return logger
