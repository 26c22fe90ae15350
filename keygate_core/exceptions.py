"""
Keygate Exceptions
==================
Exception classes for faults that cannot be expressed as a request outcome.

Expected request failures (missing key, unknown route, ...) are result values,
see ``keygate_core.access.models`` and ``keygate_core.routing.models``.
"""

from typing import Optional


class KeygateError(Exception):
    """Base exception carrying a reason code for the access log."""

    reason = "INTERNAL_ERROR"

    def __init__(self, message: str = "", reason: Optional[str] = None):
        self.reason = reason or self.reason
        self.message = message or self.reason
        super().__init__(self.message)


class StorageError(KeygateError):
    """Raised when the backing store is unreachable or cannot be written."""

    reason = "STORAGE_ERROR"


class ConfigError(KeygateError):
    """Raised when the access configuration document is structurally invalid."""

    reason = "CONFIG_ERROR"
