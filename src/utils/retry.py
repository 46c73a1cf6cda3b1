"""Retry utilities with exponential backoff for collaborator calls."""

import asyncio
import functools
import random
from collections.abc import Callable
from typing import Any

from utils.logger import get_logger

logger = get_logger(__name__)


def async_retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[Exception, int, float], Any] | None = None
):
    """
    Async decorator for retrying a coroutine function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Add random jitter to delays
        exceptions: Tuple of exception types to retry on
        on_retry: Callback (sync or async) called on each retry

    Returns:
        Decorated async function

    Example:
        @async_retry_with_backoff(max_retries=2, base_delay=0.5)
        async def assess(transcript):
            return await analyzer.analyze(transcript, tags, role, priorities)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(
                            f"All {max_retries + 1} attempts failed for "
                            f"{getattr(func, '__name__', repr(func))}"
                        )
                        raise

                    delay = min(base_delay * (exponential_base ** attempt), max_delay)
                    if jitter:
                        delay = delay * (0.5 + random.random())

                    logger.warning(
                        f"Retry {attempt + 1}/{max_retries} for "
                        f"{getattr(func, '__name__', repr(func))} "
                        f"after {delay:.2f}s due to: {e}"
                    )

                    if on_retry:
                        result = on_retry(e, attempt + 1, delay)
                        if asyncio.iscoroutine(result):
                            await result

                    await asyncio.sleep(delay)

        return wrapper
    return decorator
