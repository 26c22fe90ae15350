"""
Rate Limiting Module
====================
Fixed window rate limiters keyed by API key.
"""

# Re-export all public APIs
from .models import RateWindowState, consume
from .locks import KeyedLocks
from .base import BaseRateLimiter
from .in_memory import InMemoryRateLimiter
from .file_limiter import FileRateLimiter

__all__ = [
    # Models
    "RateWindowState",
    "consume",
    # Concurrency
    "KeyedLocks",
    # Limiters
    "BaseRateLimiter",
    "InMemoryRateLimiter",
    "FileRateLimiter",
]
