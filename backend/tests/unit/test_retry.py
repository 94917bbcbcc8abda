"""
Tests for the retry decorator.
"""

import pytest

from travel_planner.core.retry import backoff_delay, retry_with_backoff


def flaky(failures: int, error: Exception):
    """Async function failing ``failures`` times before returning "ok"."""
    calls = []

    async def fetch():
        calls.append(1)
        if len(calls) <= failures:
            raise error
        return "ok"

    return fetch, calls


async def test_retries_listed_exceptions_until_success():
    fetch, calls = flaky(2, ConnectionError("down"))
    wrapped = retry_with_backoff(max_retries=3, base_delay=0, exceptions=(ConnectionError,))(fetch)

    assert await wrapped() == "ok"
    assert len(calls) == 3


async def test_gives_up_after_max_retries():
    fetch, calls = flaky(10, ConnectionError("down"))
    wrapped = retry_with_backoff(max_retries=2, base_delay=0, exceptions=(ConnectionError,))(fetch)

    with pytest.raises(ConnectionError):
        await wrapped()
    assert len(calls) == 3


async def test_other_exceptions_are_not_retried():
    fetch, calls = flaky(1, ValueError("bad input"))
    wrapped = retry_with_backoff(max_retries=3, base_delay=0, exceptions=(ConnectionError,))(fetch)

    with pytest.raises(ValueError):
        await wrapped()
    assert len(calls) == 1


def test_delay_grows_and_is_capped():
    delays = [backoff_delay(attempt, base_delay=0.5, max_delay=4.0, jitter=False) for attempt in range(5)]
    assert delays == [0.5, 1.0, 2.0, 4.0, 4.0]


def test_jitter_stays_within_twenty_percent():
    for _ in range(50):
        assert 0.8 <= backoff_delay(0, base_delay=1.0, max_delay=10.0) <= 1.2
