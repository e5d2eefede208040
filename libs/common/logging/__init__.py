"""Centralized structured logging library.

This package provides structured JSON logging with operation ID support so
that every notice emitted while a file or binding is being protected can be
correlated with the backup it refers to.

Usage:
    # At application startup
    from libs.common.logging import configure_logging
    logger = configure_logging(service_name="safe_io", log_level="INFO")

    # Around a unit of work
    from libs.common.logging import LogContext, get_logger, log_with_context
    with LogContext("0xa8de13fa"):
        logger = get_logger(__name__)
        log_with_context(logger, "INFO", "Saving results", path="results.pkl")
"""

from libs.common.logging.config import (
    OperationIDFilter,
    configure_logging,
    get_logger,
    log_with_context,
)
from libs.common.logging.context import (
    LogContext,
    clear_operation_id,
    generate_operation_id,
    get_operation_id,
    get_or_create_operation_id,
    set_operation_id,
)
from libs.common.logging.formatter import JSONFormatter

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "log_with_context",
    "OperationIDFilter",
    # Operation ID management
    "generate_operation_id",
    "get_operation_id",
    "set_operation_id",
    "clear_operation_id",
    "get_or_create_operation_id",
    "LogContext",
    # Formatter (for advanced usage)
    "JSONFormatter",
]
