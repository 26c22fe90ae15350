"""
JSON Item Store
===============
File-based item storage keyed by integer id.

The whole store is one JSON document ``{"items": {"<id>": {...}}}``. Every
operation reloads the file; writes replace it atomically under a lock.
"""

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import structlog

from ..exceptions import StorageError

logger = structlog.get_logger(__name__)

Item = Dict[str, Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with second precision, e.g. 2026-01-01T00:00:00+00:00."""
    return moment.astimezone(timezone.utc).replace(microsecond=0).isoformat()


class JsonItemStore:
    """
    Item storage backed by a single JSON file.

    Items carry ``id``, ``createdAt`` and ``lastUpdatedAt`` in addition to
    the caller's fields.
    """

    def __init__(
        self,
        path: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.path = Path(path)
        self._clock = clock or utc_now
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Internal load/save
    # -------------------------------------------------------------------------

    def _load(self) -> Dict[str, Item]:
        if self.path.is_dir():
            raise StorageError("Storage path is a directory")
        if not self.path.exists():
            return {}

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to open storage file for reading: {e}") from e

        try:
            data = json.loads(raw) if raw else None
        except ValueError:
            logger.warning("item_store_unparsable", path=str(self.path))
            return {}

        if isinstance(data, dict) and isinstance(data.get("items"), dict):
            return data["items"]
        return {}

    def _save(self, items: Dict[str, Item]) -> None:
        if self.path.is_dir():
            raise StorageError("Storage path is a directory")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}-", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Failed to open storage file for writing: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump({"items": items}, fh, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write storage file: {e}") from e

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get_item(self, item_id: int) -> Optional[Item]:
        """Retrieve a single item by id, or None if not found."""
        with self._lock:
            return self._load().get(str(item_id))

    def save_item(self, fields: Dict[str, Any], item_id: Optional[int] = None) -> Item:
        """
        Create or replace an item.

        Args:
            fields: User fields; they replace the stored fields entirely
            item_id: Id to write; the next free id when omitted

        Returns:
            The saved item

        Raises:
            StorageError: on I/O error
        """
        item, _ = self.put_item(fields, item_id)
        return item

    def put_item(self, fields: Dict[str, Any], item_id: Optional[int] = None) -> Tuple[Item, bool]:
        """
        Like ``save_item``, also reporting whether the id was new.

        Returns:
            (saved item, created), decided under the store lock
        """
        with self._lock:
            items = self._load()
            now = format_timestamp(self._clock())

            if item_id is None:
                item_id = self._next_id(items)
            existing = items.get(str(item_id))
            created = not isinstance(existing, dict)

            item = dict(fields)
            item["id"] = item_id
            item["createdAt"] = now if created else existing.get("createdAt", now)
            item["lastUpdatedAt"] = now

            items[str(item_id)] = item
            self._save(items)

        logger.debug("item_saved", item_id=item_id, created=created)
        return item, created

    def list_ids(self) -> List[int]:
        """Ids of all stored items, ascending."""
        with self._lock:
            return self._sorted_ids(self._load())

    def get_next_id(self) -> int:
        """Highest existing id + 1, or 1 when the store is empty."""
        with self._lock:
            return self._next_id(self._load())

    def list_items(self) -> List[Item]:
        """All items in id order."""
        with self._lock:
            items = self._load()
            return [items[str(item_id)] for item_id in self._sorted_ids(items)]

    @staticmethod
    def _sorted_ids(items: Dict[str, Item]) -> List[int]:
        ids = []
        for key in items:
            try:
                ids.append(int(key))
            except ValueError:
                logger.warning("item_store_bad_id", key=key)
        return sorted(ids)

    def _next_id(self, items: Dict[str, Item]) -> int:
        ids = self._sorted_ids(items)
        return ids[-1] + 1 if ids else 1
