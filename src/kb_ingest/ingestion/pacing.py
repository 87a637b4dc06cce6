"""Inter-batch pacing for calls against rate-limited providers."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class BatchPacer:
    """Sleep between consecutive successful batches.

    The *k*-th wait (0-based) lasts ``min(delay * backoff_factor ** k,
    max_delay)`` seconds. With the default ``backoff_factor=1.0`` every wait
    is ``delay``.

    Parameters
    ----------
    delay:
        Base wait in seconds. ``0`` disables pacing.
    backoff_factor:
        Multiplier applied per wait; values above 1 slow down long runs.
    max_delay:
        Upper bound on a single wait, if any.
    sleep:
        Blocking sleep function; tests inject a recorder.
    """

    def __init__(
        self,
        delay: float,
        *,
        backoff_factor: float = 1.0,
        max_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        if backoff_factor < 1.0:
            raise ValueError(f"backoff_factor must be >= 1.0, got {backoff_factor}")
        self.delay = delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self._sleep = sleep
        self._waits = 0

    def next_delay(self) -> float:
        """Length of the upcoming wait, without waiting."""
        delay = self.delay * self.backoff_factor**self._waits
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def wait(self) -> float:
        """Block for the next delay and return how long that was."""
        delay = self.next_delay()
        self._waits += 1
        if delay > 0:
            logger.debug("Pacing: sleeping %.3fs before next batch", delay)
            self._sleep(delay)
        return delay
