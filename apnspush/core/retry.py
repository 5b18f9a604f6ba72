"""
Centralized retry utilities.

Used by the connection layer to retry HTTP/2 backend initialization with a
constant delay between attempts.
"""

import logging
import time
from typing import Callable, TypeVar, Sequence, Optional

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 4,
        delay: float = 1.0,
        retryable_exceptions: Sequence[type[Exception]] = (Exception,),
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (including first)
            delay: Delay between attempts in seconds
            retryable_exceptions: Exception types that trigger retry
        """
        self.max_attempts = max_attempts
        self.delay = delay
        self.retryable_exceptions = tuple(retryable_exceptions)


def fixed_interval(
    retries: int,
    delay: float,
    retryable_exceptions: Sequence[type[Exception]] = (Exception,),
) -> RetryConfig:
    """
    Build a config that retries `retries` times with a constant delay.

    Args:
        retries: Number of retries after the first attempt
        delay: Delay between attempts in seconds
        retryable_exceptions: Exception types that trigger retry
    """
    return RetryConfig(
        max_attempts=retries + 1,
        delay=delay,
        retryable_exceptions=retryable_exceptions,
    )


def retry_sync(
    func: Callable[..., T],
    *args,
    config: RetryConfig,
    operation_name: Optional[str] = None,
    **kwargs,
) -> T:
    """
    Execute a synchronous function with retry logic.

    Args:
        func: Sync function to execute
        *args: Positional arguments for func
        config: Retry configuration
        operation_name: Name for logging (defaults to func name)
        **kwargs: Keyword arguments for func

    Returns:
        Result of successful function call

    Raises:
        Last exception if all retries fail
    """
    op_name = operation_name or getattr(func, '__name__', 'operation')
    last_exception: Optional[Exception] = None
    retries = config.max_attempts - 1

    for attempt in range(config.max_attempts):
        try:
            return func(*args, **kwargs)
        except config.retryable_exceptions as e:
            last_exception = e
            logger.error(str(e))

            if attempt < retries:
                delay = config.delay
                logger.info(
                    f"Retry to {op_name} ({attempt + 1}/{retries})...",
                    extra={
                        "event_type": "retry_attempt",
                        "operation": op_name,
                        "attempt": attempt + 1,
                        "max_attempts": config.max_attempts,
                        "delay_seconds": delay,
                        "error_type": type(e).__name__,
                    }
                )
                time.sleep(delay)
            else:
                logger.error(
                    f"{op_name} failed after {config.max_attempts} attempts: {e}",
                    extra={
                        "event_type": "retry_exhausted",
                        "operation": op_name,
                        "attempts": config.max_attempts,
                        "final_error": str(e),
                    }
                )

    if last_exception is not None:
        raise last_exception
    raise RuntimeError(f"{op_name} failed with no exception captured")
