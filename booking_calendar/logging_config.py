"""Application-wide logging configuration."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "booking_calendar"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"
DEFAULT_LOG_LEVEL = logging.INFO

_LOGGER_INITIALIZED = False


def _build_handlers(log_file: Path | None) -> list[logging.Handler]:
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers: list[logging.Handler] = [stream_handler]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=5_000_000, backupCount=5, encoding="utf-8", delay=True
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)
    return handlers


def configure_logging(level: int | str = DEFAULT_LOG_LEVEL, log_file: Path | None = None) -> logging.Logger:
    """Configure the shared package logger and return it."""
    global _LOGGER_INITIALIZED
    logger = logging.getLogger(LOGGER_NAME)
    if _LOGGER_INITIALIZED:
        if level:
            logger.setLevel(level)
        return logger

    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in _build_handlers(log_file):
        logger.addHandler(handler)

    logging.captureWarnings(True)

    _LOGGER_INITIALIZED = True
    logger.info("Logging initialized", extra={"event": "logging_configured", "level": level})
    return logger


def reset_logging() -> logging.Logger:
    """Close and detach every handler so ``configure_logging`` starts over."""
    global _LOGGER_INITIALIZED
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        try:
            handler.close()
        finally:
            logger.removeHandler(handler)
    logger.propagate = True
    _LOGGER_INITIALIZED = False
    return logger
