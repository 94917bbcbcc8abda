"""
Rate limiting middleware using token bucket algorithm.

Each client IP gets a bucket holding ``max_requests`` tokens that refills
evenly over ``window_seconds`` (100 requests per 15 minutes by default).
Each request under the API prefix consumes one token; an empty bucket yields
429 with the standard error envelope and a ``Retry-After`` header.

Note: This is an in-memory implementation; buckets are not shared across
worker processes.
"""

import logging
import time
from typing import Callable, Dict, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

BUCKET_IDLE_TIMEOUT_SECONDS = 3600


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    The first entry of X-Forwarded-For wins over the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class TokenBucket:
    """
    Token bucket for rate limiting.

    Attributes:
        capacity: Maximum number of tokens in the bucket
        refill_rate: Number of tokens added per second
        tokens: Current number of available tokens
        last_refill: Monotonic timestamp of last refill operation
    """

    def __init__(self, capacity: int, refill_rate: float):
        if capacity <= 0:
            raise ValueError("Capacity must be positive")
        if refill_rate <= 0:
            raise ValueError("Refill rate must be positive")
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()

    def consume(self, tokens: int = 1) -> bool:
        """
        Attempt to consume tokens, refilling for elapsed time first.

        Returns:
            True if tokens were available and consumed, False otherwise
        """
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.last_refill) * self.refill_rate)
        self.last_refill = now

        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def get_wait_time(self) -> float:
        """Seconds until the next token is available."""
        if self.tokens >= 1:
            return 0.0
        return (1 - self.tokens) / self.refill_rate


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP rate limiting for API routes.

    Example:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=100,
            window_seconds=900,
            path_prefix="/api",
        )
    """

    def __init__(
        self,
        app,
        max_requests: int = 100,
        window_seconds: int = 900,
        path_prefix: str = "/api",
        enabled: bool = True,
        cleanup_interval: int = 300,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self.enabled = enabled
        self.cleanup_interval = cleanup_interval

        # {ip: (bucket, last_access_time)}
        self.buckets: Dict[str, Tuple[TokenBucket, float]] = {}
        self.last_cleanup = time.monotonic()

        logger.info(
            "Rate limiting initialized",
            extra={
                "max_requests": max_requests,
                "window_seconds": window_seconds,
                "enabled": enabled,
            }
        )

    def _get_or_create_bucket(self, ip: str) -> TokenBucket:
        now = time.monotonic()
        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_buckets(now)

        if ip in self.buckets:
            bucket, _ = self.buckets[ip]
            self.buckets[ip] = (bucket, now)
            return bucket

        bucket = TokenBucket(
            capacity=self.max_requests,
            refill_rate=self.max_requests / self.window_seconds,
        )
        self.buckets[ip] = (bucket, now)
        return bucket

    def _cleanup_old_buckets(self, now: float) -> None:
        old_ips = [
            ip for ip, (_, last_access) in self.buckets.items()
            if now - last_access > BUCKET_IDLE_TIMEOUT_SECONDS
        ]
        for ip in old_ips:
            del self.buckets[ip]

        if old_ips:
            logger.info("Cleaned up old rate limit buckets", extra={"count": len(old_ips)})
        self.last_cleanup = now

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not self.enabled or not path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = get_client_ip(request)
        bucket = self._get_or_create_bucket(client_ip)

        if not bucket.consume():
            retry_after = int(bucket.get_wait_time()) + 1
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "client_ip": client_ip,
                    "path": path,
                    "retry_after": retry_after,
                    "request_id": getattr(request.state, "request_id", None),
                }
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "message": "Too many requests, please try again later",
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.max_requests),
                    "X-RateLimit-Remaining": "0",
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(int(bucket.tokens))
        return response
