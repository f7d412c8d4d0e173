"""
Retry and timeout helpers for calls that leave the process.

The classifier and the work-order sources are the only suspension points
of a run. Each call is bounded by a timeout and given a small retry budget
with exponential backoff before the caller gives up on the item.

Example:
    >>> from maint.core.retry import RetryConfig, call_with_retry
    >>> config = RetryConfig(max_retries=1, base_delay=0.5)
    >>> items = call_with_retry(source.fetch_pending, config=config, timeout=10.0)

Configuration:
    - Default retries: 1
    - Default base delay: 1.0 seconds
    - Default multiplier: 2.0x per retry
    - Jitter: Random variance of ±20% added to delay
"""

from __future__ import annotations

import functools
import logging
import random
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, TypeVar

import httpx

from maint.core.errors import CallTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts after the first call
        base_delay: Initial delay in seconds before first retry
        multiplier: Exponential backoff multiplier
        jitter: Whether to add jitter to delays
        jitter_ratio: Random variance ratio for jitter
    """

    def __init__(
        self,
        max_retries: int = 1,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        jitter: bool = True,
        jitter_ratio: float = 0.2,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if not 0.0 <= jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be between 0.0 and 1.0")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.jitter = jitter
        self.jitter_ratio = jitter_ratio

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for a given retry attempt (0-indexed).

        Uses exponential backoff: delay = base_delay * (multiplier ^ attempt)
        """
        delay = self.base_delay * (self.multiplier**attempt)

        if self.jitter:
            variance = delay * self.jitter_ratio
            delay = delay + random.uniform(-variance, variance)

        return max(0.0, delay)


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception represents a transient, retryable error.

    Retryable errors include:
    - Engine errors flagged ``retryable`` (classifier/adapter unavailable, timeouts)
    - httpx 5xx responses, timeouts and transport errors

    Everything else (4xx responses, validation errors, programming errors)
    is raised immediately.
    """
    if getattr(exception, "retryable", False):
        return True

    # HTTPStatusError is also an HTTPError, check it first
    if isinstance(exception, httpx.HTTPStatusError):
        return 500 <= exception.response.status_code < 600

    if isinstance(exception, (httpx.TimeoutException, httpx.RequestError)):
        return True

    return False


def with_retry(
    max_retries: int = 1,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
    jitter: bool = True,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to add retry logic with exponential backoff to a function.

    Example:
        >>> @with_retry(max_retries=1, base_delay=0.5)
        ... def fetch(url: str) -> dict:
        ...     response = httpx.get(url, timeout=30.0)
        ...     response.raise_for_status()
        ...     return response.json()
    """
    config = RetryConfig(
        max_retries=max_retries,
        base_delay=base_delay,
        multiplier=multiplier,
        jitter=jitter,
    )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return call_with_retry(func, *args, config=config, **kwargs)

        return wrapper

    return decorator


def _call_with_timeout(
    func: Callable[..., T],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    timeout: float,
    operation: str,
) -> T:
    # The worker thread is abandoned on timeout; the caller only needs the bound.
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="maint-call")
    try:
        future = executor.submit(func, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise CallTimeoutError(operation, timeout) from e
    finally:
        executor.shutdown(wait=False)


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    config: RetryConfig | None = None,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """
    Call ``func`` with a bounded timeout and a retry budget.

    Args:
        func: Callable to invoke
        *args: Positional arguments for ``func``
        config: Retry configuration (defaults to one retry)
        timeout: Per-attempt timeout in seconds (None for unbounded)
        **kwargs: Keyword arguments for ``func``

    Returns:
        Whatever ``func`` returns

    Raises:
        The last exception once the retry budget is exhausted, or the first
        non-retryable exception immediately.
    """
    config = config or RetryConfig()
    func_name = getattr(func, "__name__", repr(func))

    for attempt in range(config.max_retries + 1):
        try:
            if timeout is None:
                return func(*args, **kwargs)
            return _call_with_timeout(func, args, kwargs, timeout, func_name)

        except Exception as e:
            if not is_retryable_error(e):
                logger.debug(f"{func_name}: Non-retryable error on attempt {attempt + 1}: {e}")
                raise

            if attempt >= config.max_retries:
                logger.warning(f"{func_name}: Max retries ({config.max_retries}) exceeded: {e}")
                raise

            delay = config.calculate_delay(attempt)
            logger.info(
                f"{func_name}: Retry attempt {attempt + 1}/{config.max_retries} "
                f"after {delay:.2f}s due to: {e}"
            )
            time.sleep(delay)

    raise RuntimeError("Retry loop completed without success or exception")


__all__ = [
    "RetryConfig",
    "call_with_retry",
    "is_retryable_error",
    "with_retry",
]
