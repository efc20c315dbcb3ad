"""
Rate limiter for embedding provider calls.
"""

import time
import threading
from collections import deque
from typing import Dict, Optional


class RateLimiter:
    """
    Sliding-window rate limiter shared by the scan worker threads.
    """

    def __init__(self, requests_per_minute: int = 10):
        """
        Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests allowed per minute
        """
        self.requests_per_minute = requests_per_minute
        self.request_times = deque()
        self._lock = threading.Lock()

    def wait_if_needed(self) -> None:
        """
        Wait if necessary to respect rate limits.
        """
        with self._lock:
            now = time.time()

            # Remove requests older than 1 minute
            while self.request_times and self.request_times[0] < now - 60:
                self.request_times.popleft()

            # If we're at the limit, wait until the oldest request expires
            if len(self.request_times) >= self.requests_per_minute:
                sleep_time = 60 - (now - self.request_times[0]) + 0.1
                if sleep_time > 0:
                    print(f"[RateLimiter] Rate limit reached. Waiting {sleep_time:.1f}s...")
                    time.sleep(sleep_time)
                self.request_times.popleft()

            self.request_times.append(time.time())


# One limiter per embedding model
_rate_limiters: Dict[str, RateLimiter] = {}


def get_rate_limiter(model: str, requests_per_minute: int) -> Optional[RateLimiter]:
    """
    Get the shared rate limiter for `model`, or None when throttling is off
    (requests_per_minute <= 0).
    """
    if requests_per_minute <= 0:
        return None
    limiter = _rate_limiters.get(model)
    if limiter is None or limiter.requests_per_minute != requests_per_minute:
        limiter = RateLimiter(requests_per_minute=requests_per_minute)
        _rate_limiters[model] = limiter
    return limiter
