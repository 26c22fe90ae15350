"""
Audit Module
============
JSON-lines access logging.
"""

from .models import AccessEntry
from .access_log import AccessLogger, client_ip, UNKNOWN_IP

__all__ = [
    "AccessEntry",
    "AccessLogger",
    "client_ip",
    "UNKNOWN_IP",
]
