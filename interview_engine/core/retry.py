"""
Retry with capped exponential backoff for collaborator calls.

Transient failures (timeouts, connection errors, 429/5xx, malformed
payloads) are retried; anything else is raised immediately.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import httpx

from interview_engine.config.settings import Settings
from interview_engine.core.errors import MalformedResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRYABLE_MESSAGES = ("rate limit", "timeout", "timed out", "temporarily unavailable")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempts with capped, jittered exponential delay."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 0.25

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
        )

    def delay_for(self, attempt: int, rng: random.Random | None = None) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        spread = delay * self.jitter
        return max(0.0, delay + (rng or random).uniform(-spread, spread))


def is_retryable(error: Exception) -> bool:
    """Whether an error is a transient collaborator failure."""
    if isinstance(error, MalformedResponseError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    if isinstance(error, (httpx.TimeoutException, httpx.TransportError)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_MESSAGES)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run an async operation, retrying transient failures.

    Args:
        operation: Zero-argument coroutine factory
        policy: Attempt and delay limits
        operation_name: Label used in logs
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        The operation's result

    Raises:
        The last error once attempts are exhausted, or the first
        non-retryable error.
    """
    for attempt in range(policy.max_attempts):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                logger.error(f"{operation_name} failed with non-retryable error: {e}")
                raise
            if attempt == policy.max_attempts - 1:
                logger.error(f"{operation_name} failed after {policy.max_attempts} attempts: {e}")
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"{operation_name} attempt {attempt + 1}/{policy.max_attempts} failed: {e}. "
                f"Retrying in {delay:.2f}s"
            )
            await sleep(delay)

    raise RuntimeError(f"{operation_name}: retry policy allows no attempts")
