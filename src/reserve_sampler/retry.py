"""Bounded retry with exponential backoff for fallible async operations.

The policy is an immutable value; all loop state lives in the call frame of
retry_async. The sleep coroutine is injectable so tests can record delays
instead of waiting.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from reserve_sampler.exceptions import FetchExhausted
from reserve_sampler.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait between tries.

    Delays are in seconds. The n-th sleep (1-indexed) lasts
    initial_delay * multiplier ** (n - 1).
    """

    max_attempts: int = 3
    initial_delay: float = 2.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")


DEFAULT_POLICY = RetryPolicy()


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    sleep: SleepFn = asyncio.sleep,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    description: str = "operation",
) -> T:
    """Await operation until it succeeds or the policy runs out of attempts.

    A failure on the last allowed attempt raises FetchExhausted immediately,
    chained to the underlying error; no sleep follows it. Exceptions not
    listed in retry_on propagate unchanged on first occurrence.

    Args:
        operation: Zero-argument coroutine factory. Must be safe to repeat.
        policy: Attempt bound and backoff schedule.
        sleep: Coroutine used for the backoff wait.
        retry_on: Exception types that count as retryable failures.
        description: Name used in log events and the exhaustion message.

    Returns:
        Whatever operation returns on its first successful attempt.
    """
    delay = policy.initial_delay

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == policy.max_attempts:
                logger.error(
                    "retry_exhausted",
                    operation=description,
                    attempts=policy.max_attempts,
                    error=str(e),
                )
                raise FetchExhausted(
                    f"{description} failed after {policy.max_attempts} attempts",
                    attempts=policy.max_attempts,
                ) from e

            logger.warning(
                "retry_scheduled",
                operation=description,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay=delay,
                error=str(e),
            )
            await sleep(delay)
            delay *= policy.multiplier

    # Unreachable: the loop either returns or raises on the last attempt
    raise AssertionError("retry loop exited without result")
