"""
Base Rate Limiter
=================
Fixed-window check-and-consume shared by all limiter backends.
"""

import time
from typing import Callable, Optional

from .locks import KeyedLocks
from .models import RateWindowState, consume


class BaseRateLimiter:
    """
    Fixed window counter per key.

    Subclasses provide ``_load`` and ``_save`` for their backing store; the
    read-modify-write cycle runs under the key's own lock.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._locks = KeyedLocks()

    def now(self) -> int:
        return int(self._clock())

    def check_and_consume(self, key: str, window_seconds: int, max_requests: int) -> bool:
        """
        Check and update the rate limit for a key.

        Args:
            key: Unique identifier for the client (e.g. API key)
            window_seconds: Window size in seconds (positive)
            max_requests: Maximum allowed requests in the window (positive)

        Returns:
            True if the request is allowed, False when the limit is exceeded
        """
        with self._locks.hold(key):
            now = self.now()
            state = self._load(key) or RateWindowState(window_start=now)
            allowed = consume(state, now, window_seconds, max_requests)
            self._save(key, state)
            return allowed

    def peek(self, key: str) -> Optional[RateWindowState]:
        """Current persisted state for a key, without consuming."""
        with self._locks.hold(key):
            return self._load(key)

    def _load(self, key: str) -> Optional[RateWindowState]:
        raise NotImplementedError

    def _save(self, key: str, state: RateWindowState) -> None:
        raise NotImplementedError
