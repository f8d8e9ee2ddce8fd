"""Classified exponential-backoff retry for async operations.

``with_retry`` is shared by the crawler (page navigation) and the FAQ
pipeline (model calls).  Only ``transient`` failures are retried; the delay
before attempt *n + 1* is ``base_delay_ms * 2 ** (n - 1)`` plus up to one
second of random jitter.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from sitefaq.errors import ErrorCategory, classify

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_JITTER_MS = 1000.0


def backoff_delay_ms(attempt: int, base_delay_ms: float, jitter_ms: float = 0.0) -> float:
    """Return the sleep (in ms) that follows failed attempt number *attempt* (1-based)."""
    return base_delay_ms * (2 ** (attempt - 1)) + jitter_ms


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    category: ErrorCategory = ErrorCategory.TRANSIENT,
    max_attempts: int = 3,
    base_delay_ms: float = 1000,
) -> T:
    """Await ``operation()`` up to *max_attempts* times.

    Args:
        operation: Zero-argument callable returning a fresh awaitable on each
            call.
        category: Classification applied to failures that carry no category
            of their own.
        max_attempts: Total number of attempts, including the first.
        base_delay_ms: Delay before the second attempt, doubled each time.

    Returns:
        Whatever the first successful attempt returns.

    Raises:
        The last failure once attempts are exhausted, or immediately for
        ``permanent``/``validation`` failures and cancellations.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    last_exc: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            last_exc = exc
            failure = classify(exc, category)
            if failure is not ErrorCategory.TRANSIENT or getattr(exc, "cancelled", False):
                raise

            if attempt == max_attempts:
                break

            delay = backoff_delay_ms(
                attempt, base_delay_ms, random.uniform(0, _MAX_JITTER_MS)
            )
            logger.info(
                "[retry] attempt %d/%d failed (%s): %s; retrying in %.0f ms",
                attempt, max_attempts, failure.value, exc, delay,
            )
            await asyncio.sleep(delay / 1000)

    logger.warning("[retry] giving up after %d attempt(s): %s", max_attempts, last_exc)
    raise last_exc  # type: ignore[misc]
