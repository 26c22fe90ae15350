"""
Access Log Models
=================
One access log line per request.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class AccessEntry:
    """An access log entry, in the field order consumers (Fail2Ban) expect."""
    ts: str
    ip: str
    method: str
    path: str
    status: int
    outcome: str  # "ALLOW" or "DENY"
    key: str      # API key used, or "(none)"
    reason: str   # OK, NO_KEY, RATE_LIMIT, ...

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)
