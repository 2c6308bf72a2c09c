import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_operation(
    operation: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    description: str = "operation",
) -> T:
    """Run `operation`, retrying with exponential backoff.

    The last exception is re-raised once `max_attempts` is exhausted.
    """
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            if attempt == max_attempts:
                logger.error(
                    "%s failed after %s attempts: %s", description, attempt, str(e)
                )
                raise
            logger.warning(
                "%s failed (attempt %s/%s), retrying in %ss: %s",
                description,
                attempt,
                max_attempts,
                delay,
                str(e),
            )
            time.sleep(delay)
            delay *= backoff_factor
