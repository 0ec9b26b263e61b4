"""JSON logging configuration for certificate preflight checks."""

import logging
import os

from pythonjsonlogger import jsonlogger

LOG_LEVEL_ENV = "CERT_PREFLIGHT_LOG_LEVEL"

LOGGED_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter emitting only LOGGED_FIELDS, with levelname shown as level."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        for key in set(log_record) - LOGGED_FIELDS:
            del log_record[key]


def _resolve_level(value: str | None) -> int:
    """Map a level name like "info" to its logging constant, defaulting to WARNING."""
    if not value:
        return logging.WARNING
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def _setup_logger() -> logging.Logger:
    """Initialize and configure singleton logger.

    Logs go to stderr so stdout carries only the operator transcript.

    Returns:
        Configured logger with CustomJsonFormatter
    """
    logger = logging.getLogger("cert_preflight")

    # Prevent duplicate handlers if module reloaded
    if any(isinstance(h.formatter, CustomJsonFormatter) for h in logger.handlers):
        return logger

    handler = logging.StreamHandler()
    formatter = CustomJsonFormatter(
        fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
        timestamp=True,
    )
    handler.setFormatter(formatter)

    logger.setLevel(_resolve_level(os.environ.get(LOG_LEVEL_ENV)))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


# Singleton logger instance - import this in other modules
LOGGER = _setup_logger()
