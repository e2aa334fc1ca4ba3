"""
Structured JSON logging for CPEKit.

Provides a JSON formatter for machine-readable run logs and a plain text
format for interactive use. Context such as the section name or attendee
email travels in the ``extra`` mapping of each record.

Example usage:
    >>> from cpekit.logging import get_logger, setup_logging
    >>> setup_logging(level="DEBUG", format_type="text")
    >>> logger = get_logger(__name__)
    >>> logger.info("Report parsed", extra={"tables": 4})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'taskName',
    'getMessage', 'exc_info', 'exc_text', 'stack_info', 'message',
])


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Formats log records as JSON with consistent fields: timestamp, level,
    logger name and message, followed by any context passed through ``extra``.

    Example:
        >>> formatter = JSONFormatter()
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON string.

        Args:
            record: Python logging record to format

        Returns:
            JSON formatted log string
        """
        log_entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure logging with JSON or text formatting.

    Log output goes to stderr by default so that a report written to stdout
    stays clean.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format type ("json" or "text")
        logger_name: Specific logger to configure (None for root)
        stream: Destination stream (default: sys.stderr)

    Returns:
        The configured logger

    Example:
        >>> setup_logging(level="DEBUG", format_type="json")
        >>> logger = get_logger(__name__)
        >>> logger.info("Application started")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if format_type.lower() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('%(levelname)s: %(name)s: %(message)s')

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)

    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **kwargs
) -> None:
    """
    Log message with context fields.

    Args:
        logger: Logger instance to use
        level: Log level (info, warning, error, etc.)
        message: Log message
        **kwargs: Context fields added to the record

    Example:
        >>> logger = get_logger(__name__)
        >>> log_with_context(logger, "warning", "Skipping attendee", email="a@example.com")
    """
    log_method = getattr(logger, level.lower(), logger.info)
    log_method(message, extra=dict(kwargs))
