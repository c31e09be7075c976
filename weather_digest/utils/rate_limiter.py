"""Rate limiting utilities."""

import threading
import time
from collections import deque
from typing import Callable

from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class RateLimiter:
    """Sliding-window rate limiter shared by every thread using one client."""

    def __init__(
        self,
        max_requests: int,
        time_window: int = 60,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum number of requests allowed
            time_window: Time window in seconds (default: 60 for per-minute)
            clock: Monotonic time source
            sleep: Function used to wait
        """
        self.max_requests = max_requests
        self.time_window = time_window
        self.requests = deque()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        """
        Try to acquire permission for a request.

        Returns:
            True if request is allowed, False otherwise
        """
        with self._lock:
            now = self._clock()

            # Remove old requests outside the time window
            while self.requests and self.requests[0] <= now - self.time_window:
                self.requests.popleft()

            if len(self.requests) < self.max_requests:
                self.requests.append(now)
                return True

            return False

    def wait_if_needed(self) -> None:
        """Block until a request slot is available."""
        while not self.acquire():
            with self._lock:
                oldest_request = self.requests[0] if self.requests else self._clock()
            wait_time = self.time_window - (self._clock() - oldest_request)

            if wait_time > 0:
                logger.info(f"Rate limit reached, waiting {wait_time:.2f} seconds")
                self._sleep(wait_time)
