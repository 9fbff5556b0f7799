"""
Resilience primitives for task service calls.

Provides timeout budgets and a retry-with-backoff helper for read calls
against the task service. Writes are never retried.

Timeout Budget Categories
=========================

    MEDIUM_TIMEOUT (30s)    - API calls
    SLOW_TIMEOUT (120s)     - A full tagging run over a large project

Example usage:

    from wf_ticket.core.resilience import retry_with_backoff

    page = retry_with_backoff(
        lambda: client.get(url),
        max_retries=3,
        retryable_exceptions=[httpx.TransportError],
    )
"""

import random
import time
from typing import Callable, List, Optional, Type, TypeVar


# ---------------------------------------------------------------------------
# Timeout Budget Constants
# ---------------------------------------------------------------------------

#: Medium operations: API calls
MEDIUM_TIMEOUT: float = 30.0

#: Slow operations: a full run over a large project
SLOW_TIMEOUT: float = 120.0


T = TypeVar("T")


# ---------------------------------------------------------------------------
# Timeout Error
# ---------------------------------------------------------------------------


class TimeoutException(Exception):
    """Operation timed out.

    Attributes:
        timeout_seconds: The timeout duration that was exceeded.
        operation: Name of the operation that timed out.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.timeout_seconds = timeout_seconds
        self.operation = operation


# ---------------------------------------------------------------------------
# Retry with Backoff
# ---------------------------------------------------------------------------


def backoff_delay(
    attempt: int,
    *,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """Delay before retry number ``attempt + 1``."""
    delay = min(base_delay * (exponential_base**attempt), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random())
    return delay


def retry_with_backoff(
    func: Callable[[], T],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Optional[List[Type[Exception]]] = None,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """Retry a function with exponential backoff.

    Args:
        func: Function to retry (should take no arguments; use lambda for args).
        max_retries: Maximum number of retry attempts (default 3).
        base_delay: Initial delay in seconds (default 1.0).
        max_delay: Maximum delay cap in seconds (default 60.0).
        exponential_base: Multiplier for each retry (default 2.0).
        jitter: Add randomness to delay (default True).
        retryable_exceptions: List of exceptions to retry on (default: all).
        should_retry: Optional predicate; a matching exception for which it
            returns False is raised immediately.

    An exception carrying a ``retry_after`` (seconds, e.g. from a 429
    ``Retry-After`` header) waits that long instead of the computed backoff,
    capped at ``max_delay``.

    Returns:
        Result from the function on success.

    Raises:
        Exception: The last exception if all retries exhausted.
    """
    retryable = tuple(retryable_exceptions or [Exception])
    last_exception: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            return func()
        except retryable as e:
            if should_retry is not None and not should_retry(e):
                raise
            last_exception = e

            if attempt == max_retries:
                break

            retry_after = getattr(e, "retry_after", None)
            if retry_after is not None:
                delay = min(max(float(retry_after), 0.0), max_delay)
            else:
                delay = backoff_delay(
                    attempt,
                    base_delay=base_delay,
                    max_delay=max_delay,
                    exponential_base=exponential_base,
                    jitter=jitter,
                )
            time.sleep(delay)

    if last_exception:
        raise last_exception
    raise RuntimeError("retry_with_backoff: unexpected state")
