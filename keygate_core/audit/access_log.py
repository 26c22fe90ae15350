"""
Access Logger
=============
Appends one JSON line per request to the access log file.

Write failures are reported through structlog and never fail the request.
"""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import structlog

from ..api_keys import NO_KEY_SENTINEL
from ..storage import format_timestamp
from .models import AccessEntry

logger = structlog.get_logger(__name__)

UNKNOWN_IP = "0.0.0.0"


def client_ip(headers: Mapping[str, Any], peer: Optional[str] = None) -> str:
    """Real client IP: first X-Forwarded-For entry, else the peer address."""
    forwarded = headers.get("x-forwarded-for") or headers.get("X-Forwarded-For")
    if forwarded:
        first = str(forwarded).split(",")[0].strip()
        if first:
            return first
    return peer or UNKNOWN_IP


class AccessLogger:
    """JSON-lines access log writer."""

    def __init__(
        self,
        path: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.path = Path(path)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def build_entry(
        self,
        *,
        ip: str,
        method: str,
        path: str,
        status: int,
        outcome: str,
        reason: str,
        key: Optional[str] = None,
    ) -> AccessEntry:
        return AccessEntry(
            ts=format_timestamp(self._clock()),
            ip=ip,
            method=method,
            path=path,
            status=status,
            outcome=outcome,
            key=key or NO_KEY_SENTINEL,
            reason=reason,
        )

    def write(self, entry: AccessEntry) -> bool:
        """
        Append an entry to the log file.

        Returns:
            True if the line was written
        """
        line = json.dumps(entry.to_dict(), ensure_ascii=False) + "\n"
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as fh:
                    fh.write(line)
        except OSError as e:
            logger.error("access_log_write_failed", path=str(self.path), error=str(e))
            return False
        return True

    def log_access(self, **fields: Any) -> AccessEntry:
        """Build and write an entry; see ``build_entry`` for the fields."""
        entry = self.build_entry(**fields)
        self.write(entry)
        return entry
