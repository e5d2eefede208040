"""Centralized logging configuration.

This module provides standardized logging setup using structured JSON output
with operation ID support. Applications embedding SafeIO call
configure_logging() once so that backup and displacement notices come out in
a consistent, machine-readable format.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="safe_io", log_level="INFO")
    >>> logger.info("Guard ready", extra={"context": {"backup_dir": "/tmp"}})
"""

import logging
import sys
from typing import Optional

from libs.common.logging.context import get_operation_id
from libs.common.logging.formatter import JSONFormatter


class OperationIDFilter(logging.Filter):
    """Logging filter that adds the current operation ID to log records.

    Example:
        >>> from libs.common.logging.context import set_operation_id
        >>> set_operation_id("0xa8de13fa")
        >>> handler.addFilter(OperationIDFilter())
        >>> # All records through handler now carry operation_id="0xa8de13fa"
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add operation ID to the log record.

        Args:
            record: The log record to filter

        Returns:
            True (always allows the record through)
        """
        record.operation_id = get_operation_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure structured JSON logging.

    Sets up the root logger with:
    - JSON formatted output to stdout
    - Operation ID injection on all records
    - Specified log level

    Args:
        service_name: Name of the embedding application (e.g., "safe_io")
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include context dict in output

    Returns:
        Configured root logger instance

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        JSONFormatter(
            service_name=service_name,
            include_context=include_context,
        )
    )
    handler.addFilter(OperationIDFilter())

    root_logger.addHandler(handler)

    return root_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance by name (root logger if None)."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log a message with additional context fields.

    Context fields will appear in the "context" dict in JSON output.

    Example:
        >>> log_with_context(logger, "WARNING", "Backup created", path="a.pkl")
        # Output includes: "context": {"path": "a.pkl"}
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
