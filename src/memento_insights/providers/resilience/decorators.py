"""Retry with exponential backoff for synchronous provider calls."""

import functools
import logging
import random
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec('P')
T = TypeVar('T')


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (0-based).

    Doubles from base_delay up to max_delay, then applies +/-50% jitter.
    """
    delay = min(base_delay * (2 ** attempt), max_delay)
    return delay * random.uniform(0.5, 1.5)


def with_retry(
    max_retries: int = 1,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    operation_name: str = "operation"
):
    """Retry the wrapped call when it raises one of ``retry_on``.

    Anything else propagates from the first attempt. The last error is
    re-raised once ``max_retries`` retries are used up.

    Example:
        create = with_retry(
            max_retries=1,
            retry_on=(APIConnectionError, InternalServerError),
            operation_name="OpenAI chat completion",
        )(self._create)
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")

    attempts = max_retries + 1

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if attempt + 1 >= attempts:
                        logger.error(f"{operation_name} failed after {attempts} attempt(s): {e}")
                        raise

                    delay = backoff_delay(attempt, base_delay, max_delay)
                    logger.info(
                        f"{operation_name} attempt {attempt + 1}/{attempts} failed: {e}. "
                        f"Retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper
    return decorator
