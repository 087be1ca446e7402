"""Fixed-interval retry for infrastructure operations."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..constants import RETRY_DEFAULT_MAX_ATTEMPTS, RETRY_INTERVAL_SECONDS

T = TypeVar("T")


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = RETRY_DEFAULT_MAX_ATTEMPTS,
    interval_seconds: float = RETRY_INTERVAL_SECONDS,
    on_retry: Optional[Callable[[int, Exception, float], Any]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run an async operation, retrying failures with a fixed delay.

    The delay never grows and carries no jitter. The operation must be safe
    to repeat; that is the caller's responsibility.

    Args:
        operation: Zero-argument coroutine function to call
        max_attempts: Total number of attempts, including the first
        interval_seconds: Delay between attempts
        on_retry: Optional callback (attempt, exception, delay) called before
            waiting. May be a coroutine function.
        sleep: Awaitable sleep function, replaceable in tests

    Returns:
        Result of the first successful attempt

    Raises:
        The exception from the most recent attempt once all attempts failed
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    remaining = max_attempts
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            remaining -= 1
            if remaining == 0:
                raise
            if on_retry:
                outcome = on_retry(attempt, exc, interval_seconds)
                if inspect.isawaitable(outcome):
                    await outcome
            await sleep(interval_seconds)
