"""
API Key Helpers
===============
Display masking and storage fingerprints for API keys.
"""

import hashlib
from typing import Optional

NO_KEY_SENTINEL = "(none)"


def key_fingerprint(key: str) -> str:
    """
    Stable, non-reversible identifier for a key.

    Used to name per-key state on disk so tokens never appear in file names.

    Returns:
        SHA-1 hex digest
    """
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def mask_api_key(key: Optional[str]) -> str:
    """
    Mask an API key for safe display.

    Args:
        key: Full API key, or None

    Returns:
        Masked key (e.g., "abc1****"), or "(none)" when no key is given
    """
    if not key:
        return NO_KEY_SENTINEL

    if len(key) > 8:
        return key[:4] + "****"

    return "****"
