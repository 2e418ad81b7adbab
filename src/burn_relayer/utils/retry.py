"""
Bounded retry helper for indexer requests.
"""

import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5


class TooManyRetriesError(Exception):
    """Raised when an operation failed on every attempt.

    Attributes:
        errors: The underlying exceptions, in the order they occurred
    """

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = errors
        reasons = "; ".join(f"{type(e).__name__}: {e}" for e in errors)
        super().__init__(f"Gave up after {len(errors)} attempts ({reasons})")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    is_non_retryable: Callable[[Exception], bool] = lambda e: False,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
) -> T:
    """
    Await ``operation`` until it succeeds or the attempt budget is spent.

    Retries are immediate; pacing between outer iterations is the caller's job.

    Args:
        operation: Zero-argument coroutine factory
        is_non_retryable: Predicate for errors that must be re-raised at once
        max_attempts: Maximum number of invocations

    Returns:
        The first successful result

    Raises:
        TooManyRetriesError: If all attempts failed with retryable errors
    """
    errors: list[Exception] = []

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if is_non_retryable(e):
                raise
            errors.append(e)
            logger.warning(f"Attempt {attempt}/{max_attempts} failed: {type(e).__name__}: {e}")

    raise TooManyRetriesError(errors) from errors[-1]
