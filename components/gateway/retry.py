"""
Reusable retry-with-backoff policy
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def linear_backoff(step_seconds: float = 1.0) -> Callable[[int], float]:
    """Backoff of step * attempt_number (1s, 2s, 3s ...)"""
    return lambda attempt: step_seconds * attempt


def constant_backoff(seconds: float) -> Callable[[int], float]:
    return lambda attempt: seconds


class RetryPolicy:
    """Run an async operation until it succeeds or attempts run out.

    Args:
        max_attempts: Total number of attempts (first try included)
        backoff: Maps the number of the failed attempt (1-based) to the
            delay before the next one
        is_retryable: Decides whether an exception is worth another attempt.
            Non-retryable exceptions propagate immediately.
        sleep: Coroutine used to wait, injectable for tests
    """

    def __init__(self, max_attempts: int = 3,
                 backoff: Optional[Callable[[int], float]] = None,
                 is_retryable: Optional[Callable[[BaseException], bool]] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff = backoff or linear_backoff()
        self.is_retryable = is_retryable or (lambda e: True)
        self.sleep = sleep

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Call operation until it returns.

        Returns:
            The first successful result

        Raises:
            The last exception once attempts are exhausted, or the first
            non-retryable one
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                if not self.is_retryable(e) or attempt == self.max_attempts:
                    raise
                wait_time = self.backoff(attempt)
                logger.warning(f"Attempt {attempt}/{self.max_attempts} failed ({e!r}), "
                               f"retrying in {wait_time:.1f}s")
                await self.sleep(wait_time)
        raise RuntimeError("unreachable")


async def retry(operation: Callable[[], Awaitable[T]], max_attempts: int,
                backoff: Callable[[int], float],
                is_retryable: Callable[[BaseException], bool],
                sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> T:
    """Functional shortcut for RetryPolicy(...).run(operation)"""
    policy = RetryPolicy(max_attempts, backoff, is_retryable, sleep)
    return await policy.run(operation)
