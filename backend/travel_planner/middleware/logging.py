"""
Logging middleware for request/response tracking.

Logs every HTTP request with method, path, status code, latency and the
correlation ID; failures are logged with their traceback and re-raised.

Must be registered so that it runs after RequestIDMiddleware (Starlette runs
the last-added middleware first).
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from travel_planner.core.logging_config import get_logger

logger = get_logger(__name__)

# Probe endpoints are polled constantly; log them at DEBUG only
QUIET_PATHS = frozenset({"/health", "/health/ready"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests and responses.

    Log output (JSON):
        {
            "timestamp": "2025-11-24T10:30:00.123456+00:00",
            "level": "INFO",
            "message": "Request completed",
            "method": "GET",
            "path": "/api/travel/plans",
            "status_code": 200,
            "latency_ms": 12.5,
            "request_id": "abc-123"
        }
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = request.url.path
        request_id = getattr(request.state, "request_id", None)
        log = logger.debug if path in QUIET_PATHS else logger.info

        log(
            "Request started",
            extra={"method": method, "path": path, "request_id": request_id},
        )

        start_time = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {exc}",
                extra={
                    "method": method,
                    "path": path,
                    "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
                    "request_id": request_id,
                    "exception_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise

        log(
            "Request completed",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
                "request_id": request_id,
            },
        )
        return response
