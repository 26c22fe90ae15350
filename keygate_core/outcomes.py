"""
Outcome Codes
=============
Decision and reason codes shared by authorization, routing and the access log.
"""

from enum import Enum


class Outcome(str, Enum):
    """Access log decision."""
    ALLOW = "ALLOW"
    DENY = "DENY"


class FailureReason(str, Enum):
    """Reasons a request did not produce a handler result."""
    # Authorization
    NO_KEY = "NO_KEY"
    INVALID_KEY = "INVALID_KEY"
    NO_PERMISSION = "NO_PERMISSION"
    RATE_LIMIT = "RATE_LIMIT"
    # Routing
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    # Input and handler contract
    INVALID_INPUT = "INVALID_INPUT"  # dispatcher: supplied body decodes to nothing
    INPUT_INVALID = "INPUT_INVALID"  # item handlers: missing or blank field
    INVALID_HANDLER_RESPONSE = "INVALID_HANDLER_RESPONSE"
    # Boundary
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


OK_REASON = "OK"
