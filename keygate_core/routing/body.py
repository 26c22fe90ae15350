"""
Request Body
============
Reads the request body once and decodes it as JSON.
"""

import json
from typing import Any, Union


class BodyReader:
    """
    Wraps the raw request body.

    ``json()`` returns the decoded object or array, or an empty dict when the
    body is absent, invalid, or a JSON scalar.
    """

    def __init__(self, raw: Union[bytes, str, None] = b""):
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        self.raw = raw or b""
        self._parsed = None
        self._decoded = False

    @property
    def supplied(self) -> bool:
        """Whether the caller sent a non-blank body."""
        return bool(self.raw.strip())

    def json(self) -> Any:
        if not self._decoded:
            self._parsed = self._decode()
            self._decoded = True
        return self._parsed

    def is_structurally_empty(self) -> bool:
        """A supplied body that yields no fields (``{}``, ``[]`` or undecodable)."""
        return self.supplied and self.json() in ({}, [])

    def _decode(self) -> Any:
        if not self.supplied:
            return {}
        try:
            value = json.loads(self.raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return {}
        return value if isinstance(value, (dict, list)) else {}
