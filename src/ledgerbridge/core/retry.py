"""Retry with exponential backoff for model oracle calls.

Only transient oracle failures are retried. Tool calls never pass
through here: ``sendEth`` submits a transaction, and a retry could
submit it twice.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from ledgerbridge.core.errors import (
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = logging.getLogger(__name__)

_RETRYABLE_TYPES: tuple[type[Exception], ...] = (
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderOverloadedError,
)


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Configuration for retry with backoff."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: bool = True


def is_retryable(error: Exception) -> bool:
    """Check if an error should trigger a retry."""
    return isinstance(error, _RETRYABLE_TYPES)


def _compute_delay(
    attempt: int,
    config: RetryConfig,
    error: Exception,
) -> float:
    """Compute backoff delay for a retry attempt."""
    if isinstance(error, ProviderRateLimitError) and error.retry_after is not None:
        return min(error.retry_after, config.max_delay)

    delay: float = min(config.base_delay * (2**attempt), config.max_delay)
    if config.jitter:
        delay *= random.uniform(0.5, 1.5)
    return delay


def _log_retry(attempt: int, delay: float, error: Exception) -> None:
    logger.warning("Model call failed (%s); retry %d in %.1fs", error, attempt, delay)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    on_retry: Callable[[int, float, Exception], None] | None = _log_retry,
) -> T:
    """Execute fn with retry and exponential backoff.

    Retries on ProviderRateLimitError, ProviderTimeoutError,
    and ProviderOverloadedError. All other errors propagate immediately.

    Args:
        fn: Zero-arg callable returning an awaitable.
        config: Retry configuration. Uses defaults if None.
        on_retry: Callback(attempt, delay, error) before each retry.
            Defaults to a warning log line.

    Raises:
        The original error after retries exhausted, or immediately
        for non-retryable errors.
    """
    cfg = config or RetryConfig()

    for attempt in range(cfg.max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            if not is_retryable(e) or attempt >= cfg.max_retries:
                raise
            delay = _compute_delay(attempt, cfg, e)
            if on_retry is not None:
                on_retry(attempt + 1, delay, e)
            await asyncio.sleep(delay)

    msg = f"Retry loop exited unexpectedly (max_retries={cfg.max_retries})"
    raise RuntimeError(msg)
