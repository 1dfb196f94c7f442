"""
Retry policy configuration and decorator.

Storage writes are retried on RetryableError only; everything else
propagates on the first failure.
"""

from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, TypeVar

from loguru import logger
from pydantic import BaseModel

from .errors import RetryableError, ServiceError

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    The delay for attempt N is:
    min(base_delay * (exponential_base ** N), max_delay) plus optional jitter.

    Attributes:
        max_attempts: Maximum number of attempts (including initial).
        base_delay: Initial delay in seconds between retries.
        max_delay: Maximum delay in seconds (caps backoff).
        exponential_base: Base for exponential backoff calculation.
        jitter: Whether to add random jitter to delays.
    """

    max_attempts: int = 2
    base_delay: float = 0.5
    max_delay: float = 5.0
    exponential_base: float = 2.0
    jitter: bool = True

    model_config = {"frozen": True}

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a given attempt number (0-indexed)."""
        delay = self.base_delay * (self.exponential_base**attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            # Add up to 25% jitter
            delay += delay * 0.25 * random.random()

        return delay


# One initial attempt plus a single retry
STORAGE_RETRY_POLICY = RetryPolicy()


def sync_with_retry(
    policy: RetryPolicy | None = None,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for retrying synchronous functions on RetryableError.

    Args:
        policy: Retry policy to use. Defaults to STORAGE_RETRY_POLICY.
        on_retry: Optional callback called before each retry with
                  (attempt, exception, delay).

    Returns:
        Decorated function with retry behavior.
    """
    retry_policy = policy or STORAGE_RETRY_POLICY

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(retry_policy.max_attempts):
                try:
                    return func(*args, **kwargs)
                except RetryableError as e:
                    if attempt + 1 >= retry_policy.max_attempts:
                        logger.warning(
                            f"[{e.debug_id}] Max retries ({retry_policy.max_attempts}) "
                            f"exceeded for {func.__name__}: {e.message_safe}"
                        )
                        raise

                    delay = retry_policy.calculate_delay(attempt)
                    logger.info(
                        f"[{e.debug_id}] Retry {attempt + 1}/{retry_policy.max_attempts} "
                        f"for {func.__name__} in {delay:.2f}s: {e.message_safe}"
                    )

                    if on_retry:
                        on_retry(attempt, e, delay)

                    time.sleep(delay)
                except ServiceError:
                    raise

            raise RuntimeError(f"Retry loop exited unexpectedly in {func.__name__}")

        return wrapper  # type: ignore

    return decorator
