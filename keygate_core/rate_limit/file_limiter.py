"""
File Rate Limiter
=================
Fixed window limiter persisting one JSON document per key.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

from ..api_keys import key_fingerprint
from .base import BaseRateLimiter
from .models import RateWindowState

logger = structlog.get_logger(__name__)


class FileRateLimiter(BaseRateLimiter):
    """
    File-backed fixed window rate limiter.

    State files are named by the key's fingerprint and replaced atomically.
    Any I/O failure denies the request (fail closed).
    """

    def __init__(
        self,
        directory: Union[str, Path],
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(clock)
        self.directory = Path(directory)

    def state_path(self, key: str) -> Path:
        return self.directory / f"{key_fingerprint(key)}.json"

    def check_and_consume(self, key: str, window_seconds: int, max_requests: int) -> bool:
        try:
            return super().check_and_consume(key, window_seconds, max_requests)
        except OSError as e:
            logger.error(
                "rate_limit_state_unavailable",
                directory=str(self.directory),
                error=str(e),
            )
            return False

    def _load(self, key: str) -> Optional[RateWindowState]:
        path = self.state_path(key)
        if not path.exists():
            return None
        try:
            raw = path.read_bytes().decode("utf-8")
            if not raw.strip():
                return None
            return RateWindowState.from_dict(json.loads(raw))
        except ValueError:
            logger.warning("rate_limit_state_corrupt", path=str(path))
            return None

    def _save(self, key: str, state: RateWindowState) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.state_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".rl-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state.to_dict(), fh)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
