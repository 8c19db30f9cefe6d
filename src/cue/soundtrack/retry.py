"""Retry utilities for Soundtrack API calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from cue.soundtrack.errors import TransientTransportError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    `max_attempts` counts the first try. Backoff is a fixed delay between
    attempts.
    """

    max_attempts: int = 3
    backoff_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be >= 0")


NO_RETRY = RetryConfig(max_attempts=1, backoff_seconds=0)


def is_retryable_error(error: Exception) -> bool:
    """Only transport-level failures are retried.

    Authentication failures and GraphQL errors are deterministic, so another
    attempt would fail the same way.
    """
    return isinstance(error, TransientTransportError)


async def with_retry(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str = "API call",
) -> T:
    """Execute an async function with fixed-backoff retry.

    Args:
        func: Async function performing one attempt.
        config: Retry configuration.
        operation_name: Name for logging.

    Returns:
        Result of the first successful attempt.

    Raises:
        The last exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    config = config or RetryConfig()

    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except Exception as e:
            if not is_retryable_error(e):
                raise
            extra = {
                "retry.operation": operation_name,
                "retry.attempt": attempt,
                "retry.max_attempts": config.max_attempts,
                "error.message": str(e),
                "error.type": type(e).__name__,
            }
            if attempt >= config.max_attempts:
                logger.warning("retry_exhausted", extra=extra)
                raise
            logger.info(
                "retry_attempt",
                extra={**extra, "retry.delay_s": config.backoff_seconds},
            )
        await asyncio.sleep(config.backoff_seconds)
