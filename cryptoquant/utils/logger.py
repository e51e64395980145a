"""
Logging utilities for CryptoQuant Monitor.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional
from datetime import datetime


_loggers = {}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _file_handler(log_dir: str) -> RotatingFileHandler:
    """Daily-named rotating file under ``log_dir``, shared by every logger."""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d")
    handler = RotatingFileHandler(
        log_path / f"cryptoquant_{timestamp}.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    handler.setFormatter(_formatter())
    return handler


def setup_logger(name: str = "cryptoquant", level: str = "INFO") -> logging.Logger:
    """
    Set up a named logger writing to stdout.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers = []  # Clear existing handlers

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(_formatter())
    logger.addHandler(console_handler)

    _loggers[name] = logger
    return logger


def get_logger(name: str = "cryptoquant") -> logging.Logger:
    """Get an existing logger or create a new one."""
    if name in _loggers:
        return _loggers[name]
    return setup_logger(name)


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Apply a level to every logger created so far and, with ``log_dir``,
    attach one shared rotating file to all of them.
    """
    numeric = getattr(logging, level.upper())
    file_handler = _file_handler(log_dir) if log_dir else None

    for logger in _loggers.values():
        logger.setLevel(numeric)
        for handler in logger.handlers:
            handler.setLevel(numeric)
        if file_handler is not None:
            logger.addHandler(file_handler)
