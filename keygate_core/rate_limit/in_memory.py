"""
In-Memory Rate Limiter
======================
Process-local fixed window limiter for development and testing.
"""

from typing import Callable, Dict, Optional

from .base import BaseRateLimiter
from .models import RateWindowState


class InMemoryRateLimiter(BaseRateLimiter):
    """
    Simple in-memory fixed window rate limiter.

    For development and testing only.
    Use FileRateLimiter when counters must survive a restart.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        super().__init__(clock)
        self._buckets: Dict[str, RateWindowState] = {}

    def _load(self, key: str) -> Optional[RateWindowState]:
        bucket = self._buckets.get(key)
        if bucket is None:
            return None
        return RateWindowState(window_start=bucket.window_start, count=bucket.count)

    def _save(self, key: str, state: RateWindowState) -> None:
        self._buckets[key] = state
