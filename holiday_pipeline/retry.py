"""Retry executor with linear backoff."""

import logging
from typing import Callable, Optional, TypeVar

from .datetime_handler import SystemClock

T = TypeVar('T')


class RetryExecutor:
    """Run a callable up to ``max_attempts`` times.

    The delay before attempt *n* (n > 1) is ``base_delay * (n - 1)`` seconds.
    When every attempt fails the last exception is re-raised as is.
    """

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0, clock: Optional[SystemClock] = None):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(__name__)

    def execute(self, operation: Callable[[], T], description: str = "operation") -> T:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                delay = self.base_delay * (attempt - 1)
                self.logger.info(f"Retrying {description} in {delay:.1f}s")
                self.clock.sleep(delay)
            try:
                return operation()
            except Exception as e:
                last_error = e
                self.logger.warning(f"{description} failed (attempt {attempt}/{self.max_attempts}): {e}")

        raise last_error
