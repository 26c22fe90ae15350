"""
Storage Module
==============
Persistent item storage.
"""

from .item_store import JsonItemStore, Item, format_timestamp, utc_now

__all__ = [
    "JsonItemStore",
    "Item",
    "format_timestamp",
    "utc_now",
]
