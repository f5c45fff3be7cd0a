"""
Rate Limit Module

Fixed-interval gate used to space out calls against rate limited APIs.
"""

import threading
import time
from typing import Callable


class RateGate:
    """Ensures a minimum interval between consecutive passes.

    The first pass never waits. Clock and sleep are injectable so tests can
    observe the delays without sleeping.
    """

    def __init__(self, interval: float,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self._sleep = sleep
        self._clock = clock
        self._last_pass = None
        self._lock = threading.Lock()
        self.waits = 0

    def wait(self) -> float:
        """Block until the interval since the previous pass has elapsed.

        Returns:
            Seconds slept (0 when no wait was needed)
        """
        with self._lock:
            slept = 0.0
            if self._last_pass is not None:
                elapsed = self._clock() - self._last_pass
                if elapsed < self.interval:
                    slept = self.interval - elapsed
                    self._sleep(slept)
                    self.waits += 1
            self._last_pass = self._clock()
            return slept

    def reset(self):
        """Forget the previous pass so the next one goes through immediately."""
        with self._lock:
            self._last_pass = None
