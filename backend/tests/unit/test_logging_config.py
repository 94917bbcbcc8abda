"""
Tests for structured JSON logging.
"""

import json
import logging
import sys

from travel_planner.core.logging_config import JSONFormatter, setup_logging


def make_record(message: str = "Request completed", level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="travel_planner.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:

    def test_basic_fields(self):
        output = json.loads(JSONFormatter().format(make_record()))
        assert output["level"] == "INFO"
        assert output["message"] == "Request completed"
        assert output["logger"] == "travel_planner.test"
        assert "timestamp" in output

    def test_extra_fields_included(self):
        record = make_record()
        record.request_id = "abc-123"
        record.status_code = 200
        record.vendor = "Amap"

        output = json.loads(JSONFormatter().format(record))

        assert output["request_id"] == "abc-123"
        assert output["status_code"] == 200
        assert output["vendor"] == "Amap"

    def test_none_extra_fields_skipped(self):
        record = make_record()
        record.user_id = None
        output = json.loads(JSONFormatter().format(record))
        assert "user_id" not in output

    def test_exception_rendered(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record("failed", logging.ERROR, exc_info=sys.exc_info())

        output = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in output["exception"]


class TestSetupLogging:

    def test_installs_single_json_handler(self):
        setup_logging(level="DEBUG", json_format=True)
        root = logging.getLogger()
        try:
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            setup_logging(level="WARNING", json_format=False)

    def test_plain_format(self):
        setup_logging(level="INFO", json_format=False)
        root = logging.getLogger()
        try:
            assert not isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            setup_logging(level="WARNING", json_format=False)
