"""Structured logging module for cayley-client.

This module provides:
- JSONFormatter with timestamp, level, service, correlation_id, module, message
- CorrelationIdFilter tagging every record with the current request's id
- Optional RotatingFileHandler for long-running hosts
- Log level configurable via the CAYLEY_CLIENT_LOG_LEVEL env var

Records may carry an ``extra={"context": {...}}`` mapping; it is emitted
under the ``context`` key of the JSON line.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

DEFAULT_SERVICE_NAME = "cayley-client"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current query context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID from context."""
    _correlation_id.set(None)


class JSONFormatter(logging.Formatter):
    """JSON log formatter with standard fields."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "module": record.module,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class CorrelationIdFilter(logging.Filter):
    """Filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        record.correlation_id = correlation_id if correlation_id else "-"
        return True


def get_log_level_from_env(service_prefix: str = "CAYLEY_CLIENT") -> int:
    """Get log level from CAYLEY_CLIENT_LOG_LEVEL env var."""
    level_str = os.environ.get(f"{service_prefix}_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_str, None)
    return level if isinstance(level, int) else logging.INFO


def create_file_handler(
    log_file_path: str,
    service_name: str = DEFAULT_SERVICE_NAME,
    max_bytes: int = 10_485_760,
    backup_count: int = 5,
) -> RotatingFileHandler:
    """Create a rotating file handler for JSON logs."""
    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=log_file_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(JSONFormatter(service_name=service_name))
    handler.addFilter(CorrelationIdFilter())
    return handler


def setup_structured_logging(
    service_name: str = DEFAULT_SERVICE_NAME,
    log_file_path: str | None = None,
    log_level: int | str | None = None,
) -> logging.Logger:
    """Set up structured logging on the ``service_name`` logger.

    log_level may be a level number or name ("DEBUG"); when omitted it is
    read from CAYLEY_CLIENT_LOG_LEVEL.

    Module loggers obtained through get_logger() are children of this
    logger and inherit its handlers.
    """
    if log_level is None:
        log_level = get_log_level_from_env()
    elif isinstance(log_level, str):
        level = getattr(logging, log_level.upper(), None)
        log_level = level if isinstance(level, int) else logging.INFO

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(JSONFormatter(service_name=service_name))
    console_handler.addFilter(CorrelationIdFilter())
    logger.addHandler(console_handler)

    if log_file_path:
        try:
            file_handler = create_file_handler(log_file_path, service_name)
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)
        except PermissionError:
            logger.warning(f"Cannot write to {log_file_path}, file logging disabled")

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the cayley-client hierarchy.

    get_logger("transport") returns the "cayley-client.transport" logger.
    """
    if not name:
        return logging.getLogger(DEFAULT_SERVICE_NAME)
    return logging.getLogger(f"{DEFAULT_SERVICE_NAME}.{name}")
