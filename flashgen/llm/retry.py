"""Attempt loop with exponential backoff for transient failures."""

import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from flashgen.errors import MaxRetriesExceeded, is_retryable
from flashgen.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Run an operation up to ``max_attempts`` times.

    Only errors classified as transient are retried; anything else is
    re-raised on the spot. The delay before attempt ``n + 1`` is
    ``base_delay_s * 2 ** (n - 1)``.
    """

    max_attempts: int = 3
    base_delay_s: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay_s < 0:
            raise ValueError(f"base_delay_s must not be negative, got {self.base_delay_s}")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay_s * (2 ** (attempt - 1))

    def run(self, operation: Callable[[int], T], label: str = "operation") -> T:
        """Call ``operation(attempt)`` until it succeeds or retries run out.

        Raises:
            MaxRetriesExceeded: If every attempt failed with a transient error
            Exception: The first non-transient error, unchanged
        """
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug(
                f"{label}.attempt",
                attempt=attempt,
                max_attempts=self.max_attempts,
            )
            try:
                return operation(attempt)
            except Exception as e:
                logger.warning(
                    f"{label}.attempt.failed",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error_type=type(e).__name__,
                    error_code=getattr(e, "code", None),
                    error_message=str(e),
                )
                if not is_retryable(e):
                    raise
                last_error = e

            if attempt < self.max_attempts:
                delay = self.delay_for(attempt)
                logger.info(f"{label}.retry.scheduled", attempt=attempt, delay_s=delay)
                self.sleep(delay)

        raise MaxRetriesExceeded(last_error, self.max_attempts) from last_error
