"""
Retrying provider calls with exponential backoff.

A failure is retried only when its structured error says so: a
``FlightAPIException`` carries its own ``retryable`` flag and anything else
is classified through ``FlightSearchError.from_exception``. Bad input is
therefore never retried, while timeouts and rate limits are.

Usage:
    >>> search = retry_with_backoff()(provider.search)
    >>> flights = search(params)
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, replace
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from .config import FlightFinderConfig, get_config
from .errors import FlightAPIException, FlightSearchError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
RetryCallback = Callable[[Exception, int, float], None]


def is_retryable_error(exception: Exception) -> bool:
    """Whether repeating the failed call may succeed."""
    if isinstance(exception, FlightAPIException):
        return exception.error.retryable
    return FlightSearchError.from_exception(exception).retryable


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float,
    jitter: bool,
) -> float:
    """
    Seconds to wait after failed attempt number ``attempt`` (counting from 0).

    With jitter the capped delay is scaled by a random factor in [0.5, 1.5).
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to retry and how long to wait in between.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
        exponential_base: Growth factor between consecutive delays
        jitter: Randomize delays to spread out concurrent retries
    """
    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 10.0
    exponential_base: float = 2.0
    jitter: bool = True

    @classmethod
    def from_config(cls, config: Optional[FlightFinderConfig] = None, **overrides: Any) -> "RetryPolicy":
        """Policy from the configuration; ``None`` overrides are ignored."""
        config = config or get_config()
        policy = cls(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            exponential_base=config.retry_exponential_base,
            jitter=config.retry_jitter,
        )
        return replace(policy, **{k: v for k, v in overrides.items() if v is not None})

    def delay(self, attempt: int) -> float:
        return backoff_delay(attempt, self.base_delay, self.max_delay, self.exponential_base, self.jitter)


def retry_with_backoff(
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    exponential_base: Optional[float] = None,
    jitter: Optional[bool] = None,
    on_retry: Optional[RetryCallback] = None,
) -> Callable[[F], F]:
    """
    Decorator retrying retryable failures with exponential backoff.

    Unset arguments are read from the configuration at call time, so a
    ``configure()`` after decoration still applies.

    Args:
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
        exponential_base: Growth factor between delays
        jitter: Randomize delays
        on_retry: Called as ``on_retry(exception, retry_number, delay)``
            before each sleep

    Example:
        >>> @retry_with_backoff(max_retries=1)
        ... def fetch():
        ...     return provider.search(params)
    """
    overrides = {
        "max_retries": max_retries,
        "base_delay": base_delay,
        "max_delay": max_delay,
        "exponential_base": exponential_base,
        "jitter": jitter,
    }

    def decorator(func: F) -> F:
        name = getattr(func, "__name__", repr(func))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            policy = RetryPolicy.from_config(**overrides)
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_error(e):
                        raise
                    if attempt >= policy.max_retries:
                        logger.warning(f"{name} failed after {attempt + 1} attempt(s): {e}")
                        raise

                    delay = policy.delay(attempt)
                    attempt += 1
                    logger.info(f"{name} failed ({e}); retry {attempt}/{policy.max_retries} in {delay:.2f}s")
                    if on_retry:
                        on_retry(e, attempt, delay)
                    time.sleep(delay)

        return wrapper  # type: ignore

    return decorator


__all__ = [
    "RetryPolicy",
    "retry_with_backoff",
    "backoff_delay",
    "is_retryable_error",
]
