"""
Retry-with-fixed-delay primitive shared by the prober and the alert dispatcher.

A policy is a bounded number of additional attempts separated by a constant
pause, without jitter or exponential growth.
"""

import asyncio
import logging
from typing import Awaitable, Callable, NamedTuple, Tuple, Type, TypeVar

from doi_monitor.errors import RetryExhaustedError, describe_error

# Module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(NamedTuple):
    """
    Attempt limit and pause for a retried operation.

    Attributes:
        max_retries: Additional attempts after the first one.
        retry_delay_ms: Pause between two attempts, in milliseconds.
    """

    max_retries: int
    retry_delay_ms: int

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000


async def retry_with_fixed_delay(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    description: str = "operation",
) -> T:
    """
    Runs an asynchronous operation, retrying it on the given exception types.

    Exceptions that are not listed in retry_on propagate immediately.

    Args:
        operation: A zero-argument callable returning a fresh awaitable per attempt.
        policy: The attempt limit and the pause between attempts.
        retry_on: Exception types that trigger another attempt.
        description: Short label used in log lines and in the final error.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        ValueError: If the policy is invalid.
        RetryExhaustedError: If every attempt failed with a retryable exception.
    """
    if policy.max_retries < 0:
        raise ValueError("max_retries must be a non-negative integer.")
    if policy.retry_delay_ms < 0:
        raise ValueError("retry_delay_ms must be a non-negative integer.")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except retry_on as e:
            if attempt >= policy.max_attempts:
                raise RetryExhaustedError(description, attempt, e) from e
            logger.warning(
                f"{description} failed (attempt {attempt} of {policy.max_attempts}): "
                f"{describe_error(e)}. Retrying in {policy.retry_delay_ms}ms."
            )
            await asyncio.sleep(policy.retry_delay_seconds)
