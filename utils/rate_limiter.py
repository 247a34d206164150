"""Fixed-interval rate limiter for upstream FPL requests.

The portal throttles aggressively, so every login step and every standings
page is spaced by a fixed interval. Clock and sleep are injectable so tests
can run without real delays.
"""

import logging
import time
from threading import Lock
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Guarantees at least ``interval`` seconds between successive calls."""

    def __init__(self, interval: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if interval < 0:
            raise ValueError("interval must be non-negative")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self.lock = Lock()

    def wait(self) -> float:
        """Block until the next request slot is free.

        Returns:
            Time waited in seconds
        """
        with self.lock:
            waited = 0.0
            if self._last is not None:
                remaining = self.interval - (self._clock() - self._last)
                if remaining > 0:
                    logger.debug("Rate limit: waiting %.2fs", remaining)
                    self._sleep(remaining)
                    waited = remaining
            self._last = self._clock()
            return waited

    def backoff(self) -> float:
        """Sleep one full interval regardless of history, then take the slot.

        Returns:
            Time waited in seconds
        """
        with self.lock:
            if self.interval > 0:
                logger.debug("Backing off %.2fs", self.interval)
                self._sleep(self.interval)
            self._last = self._clock()
            return self.interval

    def reset(self) -> None:
        with self.lock:
            self._last = None
