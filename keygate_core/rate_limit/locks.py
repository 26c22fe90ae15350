"""
Keyed Locks
===========
One mutex per identity so read-modify-write cycles on the same key are
serialized while different keys proceed independently.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLocks:
    """Registry of per-key ``threading.Lock`` objects, created on first use."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.get(key)
                if lock is None:
                    lock = threading.Lock()
                    self._locks[key] = lock
        return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self.get(key):
            yield

    def __len__(self) -> int:
        return len(self._locks)
