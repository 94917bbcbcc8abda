"""
Request ID middleware for correlation tracking.

Every request gets a correlation ID:
- Taken from the client's X-Request-ID header when it is a safe token
- Otherwise a freshly generated UUID
- Stored in request.state for logging and error handlers
- Echoed in the X-Request-ID response header
"""

import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Client-supplied IDs end up in log lines; accept only short, plain tokens
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add request ID correlation to all requests.

    Example:
        app.add_middleware(RequestIDMiddleware)

    Usage in routes:
        request_id = request.state.request_id
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", "")
        if not _SAFE_REQUEST_ID.match(request_id):
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
