"""
Structured JSON logging configuration.

This module sets up application-wide JSON logging with:
- Consistent field names across all logs
- Request correlation IDs
- User tracking for authenticated requests
- Vendor call context (which vendor, latency, token usage)

Logs are output to stdout in JSON format for easy parsing by
log aggregation systems.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "asctime",
})


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Outputs log records as single-line JSON objects with consistent fields:
    - timestamp: ISO 8601 format with microseconds (UTC)
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: Log message
    - logger: Logger name (module path)
    - exception: Exception details (if exception occurred)
    - any fields passed via ``extra=`` (request_id, user_id, path,
      status_code, latency_ms, vendor, ...)

    Example output:
        {"timestamp": "2025-11-24T10:30:00.123456+00:00", "level": "INFO",
         "message": "Request completed", "logger": "travel_planner.middleware.logging",
         "path": "/api/travel/plans", "status_code": 200, "latency_ms": 12.5,
         "request_id": "abc-123"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        # Fields passed via logger.info("msg", extra={...})
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_data or key.startswith("_"):
                continue
            if value is not None:
                log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)


# Client libraries that log every request or frame at INFO/DEBUG
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "openai",
    "websockets",
    "asyncio",
    "sqlalchemy.engine",
)

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter()
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure application logging.

    Replaces any handlers on the root logger with a single stdout handler,
    JSON-formatted unless ``json_format`` is False (LOG_JSON=false gives
    readable lines for local development). Vendor client libraries are held
    at WARNING so request logs stay readable.

    Args:
        level: Logging level name; unknown names fall back to INFO
        json_format: Use JSONFormatter instead of a plain text format
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_build_formatter(json_format))
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance with given name.

    Example:
        logger = get_logger(__name__)
        logger.info("Processing request", extra={"request_id": "abc-123"})
    """
    return logging.getLogger(name)
