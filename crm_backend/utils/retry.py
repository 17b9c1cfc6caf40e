"""
Retry helpers for database work.

``execute_with_retry`` re-runs a zero-argument callable a fixed number of
times with a fixed pause between attempts and re-raises the last error once
the attempts are used up.
"""
import functools
import logging
import time
from typing import Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_DELAY = 1.0


def execute_with_retry(
    query_fn: Callable,
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_DELAY,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_retry: Optional[Callable[[BaseException], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Call ``query_fn`` until it succeeds or ``max_retries`` attempts have failed.

    Args:
        query_fn: Zero-argument callable performing the database operation
        max_retries: Total number of attempts (at least one is always made)
        delay: Seconds to wait between attempts; the pause never grows
        retry_on: Exception types that trigger another attempt. Anything else
            propagates immediately.
        on_retry: Optional hook called with the error before each pause,
            e.g. to roll back a session
        sleep: Sleep function, injectable for tests

    Returns:
        Whatever ``query_fn`` returns on the first successful attempt

    Raises:
        The last error raised by ``query_fn``, unchanged
    """
    attempts = max(1, int(max_retries))
    last_error = None

    for attempt in range(1, attempts + 1):
        try:
            return query_fn()
        except retry_on as e:
            logger.warning(f"Database query attempt {attempt}/{attempts} failed: {e}")
            last_error = e
            if attempt < attempts:
                if on_retry is not None:
                    on_retry(e)
                sleep(delay)

    raise last_error


def with_retry(max_retries: int = DEFAULT_MAX_RETRIES, delay: float = DEFAULT_DELAY,
               retry_on: Tuple[Type[BaseException], ...] = (Exception,)):
    """
    Decorator form of execute_with_retry.

    Usage:
        @with_retry(max_retries=5, delay=0.5, retry_on=(OperationalError,))
        def load_customers():
            return Customer.query.all()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return execute_with_retry(
                lambda: func(*args, **kwargs),
                max_retries=max_retries,
                delay=delay,
                retry_on=retry_on,
            )
        return wrapper
    return decorator
