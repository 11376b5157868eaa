"""Bounded retry with exponential backoff for fallible ledger calls.

Each call site wraps one I/O step; budgets are not shared between steps, so a
fetch that needed retries does not shrink the budget of the submit that
follows it.
"""

import logging
import threading
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Runs an operation up to ``max_retries + 1`` times.

    Attributes:
        sleep: Suspension function used between attempts. Injected by tests
            to observe or skip the backoff delays.
        cancel_event: When given, backoff waits on this event instead of
            sleeping, and a set event ends the retries with the last error.
    """

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.sleep = sleep
        self.cancel_event = cancel_event

    def run(
        self,
        operation: Callable[[], T],
        max_retries: int,
        base_delay: float,
        *,
        retryable: Tuple[Type[BaseException], ...] = (Exception,),
        label: str = "operation",
    ) -> T:
        """Call ``operation`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Zero-argument callable performing one attempt.
            max_retries: Additional attempts after the first failure.
            base_delay: Seconds to wait after the first failure; doubles after
                every further failure (``base_delay * 2**attempt``).
            retryable: Exception types that earn another attempt. Anything
                else propagates immediately.
            label: Short name used in log lines.

        Returns:
            The first successful result.

        Raises:
            The exception from the final attempt, unchanged. When cancelled
            during a backoff, the exception from the attempt before it.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")

        total_attempts = max_retries + 1
        for attempt in range(total_attempts):
            try:
                result = operation()
            except retryable as exc:
                if attempt >= max_retries:
                    logger.error(
                        "%s exhausted retries attempts=%d error=%s",
                        label,
                        total_attempts,
                        exc,
                    )
                    raise
                delay = base_delay * (2**attempt)
                logger.warning(
                    "%s attempt %d/%d failed; retrying in %.2fs error=%s",
                    label,
                    attempt + 1,
                    total_attempts,
                    delay,
                    exc,
                )
                if self._wait(delay):
                    logger.warning("%s retries abandoned after cancellation", label)
                    raise
                continue

            if attempt > 0:
                logger.info("%s succeeded on attempt %d/%d", label, attempt + 1, total_attempts)
            return result

        raise AssertionError("unreachable")

    def _wait(self, delay: float) -> bool:
        """Back off for ``delay`` seconds; True when cancellation cut it short."""
        if self.cancel_event is None:
            self.sleep(delay)
            return False
        return self.cancel_event.wait(delay)
