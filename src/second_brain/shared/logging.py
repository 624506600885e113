"""
Structured JSON logging.

Every record is one JSON object per line. Fields passed with ``extra=`` are
emitted at the top level next to the request's correlation id.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from second_brain.config import Settings, get_settings
from second_brain.shared.correlation import get_correlation_id

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_QUIET_LOGGERS = ("httpx", "httpcore", "python_multipart")
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects")


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES:
                continue
            # Never let an extra field shadow a base key.
            entry[f"extra_{key}" if key in entry else key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes JSON even before ``setup_logging`` runs.

    Args:
        name: Logger name (typically __name__).
    """
    logger = logging.getLogger(name)

    # Until the root logger is configured, give the module its own handler.
    if not logger.handlers and not logging.getLogger().handlers:
        logger.addHandler(_json_handler())
        logger.propagate = False

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    return logger


def setup_logging(settings: Settings | None = None) -> None:
    """Route all logging through one JSON handler on the root logger."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    root.handlers = [_json_handler()]

    # Loggers created before this point wrote directly; send them to the root now.
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.name.startswith("second_brain"):
            logger.handlers.clear()
            logger.propagate = True

    sqlalchemy_level = os.getenv("SQLALCHEMY_LOG_LEVEL", "").strip().upper() or "WARNING"
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(sqlalchemy_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def mask(value: str, keep: int = 6) -> str:
    """Mask a credential-like value for logging."""
    if not value:
        return ""
    if len(value) <= keep:
        return "*" * len(value)
    return f"{value[:keep]}***"
