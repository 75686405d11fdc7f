import logging
import random
import time
from typing import Callable, Iterable, TypeVar

from cloudmap.errors import LLMServiceError, RETRYABLE_MARKERS, RETRYABLE_STATUS_CODES

logger = logging.getLogger(__name__)

T = TypeVar("T")


def should_retry(error: Exception, retry_status_codes: Iterable[int]) -> bool:
    if not isinstance(error, LLMServiceError):
        return False
    if error.upstream_status in retry_status_codes:
        return True
    lowered = error.message.lower()
    return any(marker in lowered for marker in RETRYABLE_MARKERS)


def with_exponential_backoff(
    operation: Callable[[], T],
    max_retries: int = 3,
    initial_delay: float = 0.2,
    max_delay: float = 10.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.25,
    retry_status_codes: Iterable[int] = RETRYABLE_STATUS_CODES,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run `operation`, retrying retryable model errors with exponential backoff.

    Delays are in seconds. Each wait is `delay + uniform(0, jitter * delay)`,
    and the delay grows by `backoff_factor` up to `max_delay`. The last
    error is re-raised once retries are exhausted.
    """
    retry_status_codes = tuple(retry_status_codes)
    delay = initial_delay

    for attempt in range(max_retries + 1):
        try:
            return operation()
        except LLMServiceError as e:
            if attempt == max_retries or not should_retry(e, retry_status_codes):
                raise

            wait = delay + random.uniform(0, jitter * delay)
            logger.warning(
                "[Retry] Model request failed (attempt %d/%d), retrying in %.2fs: %s",
                attempt + 1,
                max_retries + 1,
                wait,
                e.message,
            )
            sleep(wait)
            delay = min(delay * backoff_factor, max_delay)

    raise RuntimeError("unreachable")
