"""
Caller-side retry policy for transient provider errors.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from pyragent.exceptions import RateLimited, TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    **kwargs: Any,
) -> T:
    """
    Await ``func(*args, **kwargs)``, retrying transient failures.

    Only ``TransientError`` subclasses are retried, with exponential
    backoff. ``RateLimited`` waits for the provider-supplied delay when
    one is given. Everything else propagates on the first failure.

    Args:
        func: Coroutine function to call
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry, doubled each attempt
        max_delay: Upper bound on any single delay

    Returns:
        The result of the first successful call
    """
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except TransientError as e:
            if attempt >= max_retries:
                logger.error(f"[Retry] Giving up after {attempt + 1} attempts: {e}")
                raise

            if isinstance(e, RateLimited) and e.retry_after is not None:
                delay = e.retry_after
            else:
                delay = base_delay * (2 ** attempt)  # Exponential backoff
            delay = min(delay, max_delay)

            attempt += 1
            logger.info(f"[Retry] {type(e).__name__}, retrying (attempt {attempt}) after {delay}s")
            await asyncio.sleep(delay)
