"""Retry policy for external calls."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry a call with a linearly increasing delay.

    Args:
        retries: extra attempts after the first one.
        backoff_step: delay before retry *n* (1-based) is ``n * backoff_step``.
        sleep: injectable sleep function.
    """

    retries: int = 2
    backoff_step: float = 1.0
    sleep: Callable[[float], None] = time.sleep

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def delay_for(self, attempt: int) -> float:
        """Delay after the failed 0-based *attempt*, before the next one."""
        return (attempt + 1) * self.backoff_step

    def call(
        self,
        func: Callable[[], T],
        exceptions: Union[type[Exception], tuple[type[Exception], ...]] = Exception,
        label: str = "call",
    ) -> T:
        """Run *func*, retrying on *exceptions*; re-raises the last failure."""
        for attempt in range(self.retries):
            try:
                return func()
            except exceptions as e:
                delay = self.delay_for(attempt)
                logger.info(
                    "%s attempt %d/%d failed (%s), retrying in %.1fs",
                    label, attempt + 1, self.max_attempts, e, delay,
                )
                self.sleep(delay)
        try:
            return func()
        except exceptions as e:
            logger.warning("%s failed after %d attempts: %s", label, self.max_attempts, e)
            raise
