"""Tests for JSON log formatter.

Tests verify that records are formatted with:
- Required schema fields (timestamp, level, service, operation_id, message)
- Context taken from an explicit dict or from ``extra=`` attributes
- Exception information and source location
"""

import json
import logging
import sys
from datetime import UTC, datetime

import pytest

from libs.common.logging.formatter import JSONFormatter


def _record(
    msg: str = "Test",
    args: tuple = (),
    level: int = logging.INFO,
    exc_info=None,
) -> logging.LogRecord:
    return logging.LogRecord(
        name="libs.safe_io.registry",
        level=level,
        pathname="/path/to/registry.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    @pytest.fixture
    def formatter(self) -> JSONFormatter:
        return JSONFormatter(service_name="safe_io")

    def test_required_fields(self, formatter: JSONFormatter) -> None:
        record = _record("Backup created")
        record.operation_id = "0xa8de13fa"

        log_dict = json.loads(formatter.format(record))

        assert "timestamp" in log_dict
        assert log_dict["level"] == "INFO"
        assert log_dict["service"] == "safe_io"
        assert log_dict["operation_id"] == "0xa8de13fa"
        assert log_dict["message"] == "Backup created"

    def test_timestamp_is_utc_iso8601_with_millis(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.created = 1697896200.25

        timestamp = json.loads(formatter.format(record))["timestamp"]

        assert timestamp == "2023-10-21T13:50:00.250Z"
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        assert dt.tzinfo == UTC

    def test_missing_operation_id_is_null(self, formatter: JSONFormatter) -> None:
        assert json.loads(formatter.format(_record()))["operation_id"] is None

    def test_explicit_context_dict(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.context = {"variable": "x", "scope": "Main"}
        record.ignored_extra = "not used when context is explicit"

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {"variable": "x", "scope": "Main"}

    def test_extra_fields_become_context(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.path = "results.pkl"
        record.backup_path = "results_a8de13fa.pkl"

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {
            "path": "results.pkl",
            "backup_path": "results_a8de13fa.pkl",
        }

    def test_reserved_attributes_are_not_context(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.operation_id = "0x00000001"

        assert "context" not in json.loads(formatter.format(record))

    def test_no_context_when_disabled(self) -> None:
        formatter = JSONFormatter(service_name="safe_io", include_context=False)
        record = _record()
        record.context = {"variable": "x"}

        assert "context" not in json.loads(formatter.format(record))

    def test_non_json_values_are_stringified(self, formatter: JSONFormatter) -> None:
        from pathlib import Path

        record = _record()
        record.path = Path("/data/results.pkl")

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"]["path"] == "/data/results.pkl"

    def test_exception_details(self, formatter: JSONFormatter) -> None:
        try:
            raise OSError("disk full")
        except OSError:
            exc_info = sys.exc_info()

        log_dict = json.loads(
            formatter.format(_record("Bookkeeping failed", level=logging.CRITICAL, exc_info=exc_info))
        )

        assert log_dict["exception"]["type"] == "OSError"
        assert log_dict["exception"]["message"] == "disk full"
        assert "OSError: disk full" in log_dict["exception"]["traceback"]

    def test_source_location(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.funcName = "assign"

        log_dict = json.loads(formatter.format(record))

        assert log_dict["source"] == {
            "file": "/path/to/registry.py",
            "line": 42,
            "function": "assign",
        }

    @pytest.mark.parametrize(
        ("level_name", "level_num"),
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
        ],
    )
    def test_levels(self, formatter: JSONFormatter, level_name: str, level_num: int) -> None:
        log_dict = json.loads(formatter.format(_record(level=level_num)))

        assert log_dict["level"] == level_name

    def test_message_with_args(self, formatter: JSONFormatter) -> None:
        record = _record("Variable `%s` already defined in %s.", args=("x", "Main"))

        log_dict = json.loads(formatter.format(record))

        assert log_dict["message"] == "Variable `x` already defined in Main."
