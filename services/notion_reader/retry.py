"""Retry logic with a fixed delay for Notion and network operations."""

import asyncio
import logging
from functools import wraps
from typing import Callable, Any, Type, Tuple

import httpx
from notion_client.errors import HTTPResponseError, RequestTimeoutError

logger = logging.getLogger(__name__)

REMOTE_ERRORS: Tuple[Type[Exception], ...] = (
    HTTPResponseError,
    RequestTimeoutError,
    httpx.HTTPError,
)


def retry_with_fixed_delay(
    max_retries: int = 3,
    delay: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = REMOTE_ERRORS
):
    """
    Decorator to retry a coroutine function with a fixed delay between attempts.

    The wrapped function is attempted once plus up to ``max_retries`` more
    times. When the decorated callable is a bound method whose instance has
    ``max_retries``/``retry_delay`` attributes, those take precedence so the
    policy can come from configuration.

    Args:
        max_retries: Maximum number of retry attempts
        delay: Seconds to wait before each retry
        exceptions: Tuple of exception types to catch and retry

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            owner = args[0] if args else None
            retries = getattr(owner, "max_retries", max_retries)
            wait = getattr(owner, "retry_delay", delay)
            last_exception = None

            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)

                except exceptions as e:
                    last_exception = e

                    if attempt < retries:
                        pause = max(wait, _extract_retry_after(e))
                        logger.warning(
                            f"Attempt {attempt + 1}/{retries + 1} failed for {func.__name__}: {e}. "
                            f"Retrying in {pause:.2f} seconds..."
                        )
                        await asyncio.sleep(pause)
                    else:
                        logger.error(
                            f"All {retries + 1} attempts failed for {func.__name__}: {e}"
                        )

            raise last_exception

        return wrapper
    return decorator


def _extract_retry_after(error: Exception) -> float:
    """
    Seconds the server asked us to wait, or 0 when it did not.

    Notion answers rate limiting with a 429 ``rate_limited`` code and a
    Retry-After header.
    """
    if getattr(error, "code", None) != "rate_limited" and getattr(error, "status", None) != 429:
        return 0.0

    headers = getattr(error, "headers", None)
    if headers is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
    if not headers:
        return 0.0

    retry_after = headers.get("Retry-After") or headers.get("retry-after")
    try:
        return float(retry_after) if retry_after else 0.0
    except ValueError:
        return 0.0
