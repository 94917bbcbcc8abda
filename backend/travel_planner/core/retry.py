"""
Retry Decorator with Exponential Backoff

Provides a decorator for retrying async vendor calls with exponential
backoff and jitter. Only the exceptions passed in ``exceptions`` trigger a
retry; everything else (including vendor-reported failures) propagates on
the first attempt.
"""

import asyncio
import functools
import logging
import random
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)

JITTER_RATIO = 0.2


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (0-based)."""
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        spread = delay * JITTER_RATIO
        delay = max(0.0, delay + random.uniform(-spread, spread))
    return delay


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    Decorator for retrying async functions with exponential backoff.

    Args:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
        exponential_base: Growth factor between retries
        jitter: Randomise each delay by up to 20% either way
        exceptions: Exception types that trigger a retry

    Example:
        @retry_with_backoff(max_retries=2, exceptions=(httpx.TransportError,))
        async def fetch_weather():
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            attempts = max_retries + 1
            for attempt in range(attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(
                            "Giving up after retries",
                            extra={"operation": func.__name__, "attempts": attempts, "error": str(e)},
                        )
                        raise

                    delay = backoff_delay(attempt, base_delay, max_delay, exponential_base, jitter)
                    logger.info(
                        "Retrying after transient failure",
                        extra={
                            "operation": func.__name__,
                            "attempt": attempt + 1,
                            "attempts": attempts,
                            "exception_type": type(e).__name__,
                            "delay_seconds": round(delay, 2),
                        },
                    )
                    await asyncio.sleep(delay)

        return wrapper
    return decorator
