import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-delay throttle for outbound geocoding calls.

    The first call passes straight through; every later call sleeps the full
    interval, so consecutive calls start at least ``1 / requests_per_second``
    seconds apart. There is no bursting.
    """

    def __init__(self, requests_per_second=1.0):
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be positive, got {requests_per_second}")
        self.requests_per_second = requests_per_second
        self.delay = 1.0 / requests_per_second
        self._called = False

    def wait(self):
        if self._called:
            logger.debug(f"Rate limit: waiting {self.delay:.2f}s before next request")
            time.sleep(self.delay)
        self._called = True

    def reset(self):
        self._called = False
