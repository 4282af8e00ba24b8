"""Retry logic for store operations

Store writes are retried a small, bounded number of times:
1. Only transient errors are retried (StorageError, connection drops, timeouts)
2. Short exponential backoff with jitter between attempts
3. The last error is re-raised once retries are exhausted
"""

import asyncio
import random
import logging
from typing import Awaitable, Callable, Any, TypeVar

from habitcore.config import STORE_SAVE_RETRIES
from habitcore.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Retry configuration
MAX_RETRIES = STORE_SAVE_RETRIES
BASE_DELAY = 0.05  # seconds
MAX_DELAY = 1.0  # seconds
JITTER = 0.1  # 10% random jitter


def is_retryable_error(exc: Exception) -> bool:
    """
    Determine if error is transient and should be retried.

    Retryable errors:
    - StorageError raised by a store adapter
    - ConnectionError / TimeoutError from a backend client

    Everything else (serialization bugs, programming errors) is not retried.
    """
    return isinstance(exc, (StorageError, ConnectionError, TimeoutError, asyncio.TimeoutError))


def calculate_backoff(attempt: int) -> float:
    """
    Exponential backoff delay with jitter.

    Formula: delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY) +/- 10%
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    return max(delay + jitter_amount, 0.0)


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any
) -> T:
    """
    Retry async function with exponential backoff.

    Args:
        func: Async function to retry
        max_retries: Number of retries after the first attempt (default: STORE_SAVE_RETRIES)
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        Last exception if all retries exhausted or non-retryable error

    Example:
        await retry_with_backoff(store.set, key, value, max_retries=1)
    """
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if attempt == max_retries:
                if max_retries:
                    logger.error(f"[RETRY] All {max_retries} retries exhausted for {name}")
                raise

            if not is_retryable_error(e):
                logger.warning(
                    f"[RETRY] Non-retryable error for {name}: "
                    f"{type(e).__name__}: {e}"
                )
                raise

            backoff = calculate_backoff(attempt)
            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {name} "
                f"after {backoff:.2f}s (error: {type(e).__name__})"
            )
            await asyncio.sleep(backoff)

    raise RuntimeError("Retry logic failed unexpectedly")

