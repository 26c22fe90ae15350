"""
Rate Limit Models
=================
Data models for fixed-window rate limiting.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class RateWindowState:
    """Per-key fixed window counter."""
    window_start: int  # Unix timestamp
    count: int = 0

    def expired(self, now: int, window_seconds: int) -> bool:
        return now - self.window_start >= window_seconds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["RateWindowState"]:
        """Rebuild state from decoded JSON; None when the record is unusable."""
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                window_start=int(data["window_start"]),
                count=int(data["count"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


def consume(state: RateWindowState, now: int, window_seconds: int, max_requests: int) -> bool:
    """
    Apply one request to a window state in place.

    Resets the window when it has elapsed, then admits the request if the
    window still has budget.

    Returns:
        True if the request is admitted (count incremented)
    """
    if state.expired(now, window_seconds):
        state.window_start = now
        state.count = 0

    if state.count >= max_requests:
        return False

    state.count += 1
    return True
