"""
Routing Module
==============
Route tables, request body decoding and handler dispatch.
"""

# Re-export all public APIs
from .models import HandlerResult, Failure, DispatchResult, Handler, PathVars
from .body import BodyReader
from .tables import (
    LegacyRouteTable,
    PatternRoute,
    PatternRouteTable,
    RouteTable,
    build_route_table,
    compile_route_pattern,
    NO_PARAM,
    WITH_PARAM,
)
from .dispatcher import dispatch, normalize_handler_result

__all__ = [
    # Models
    "HandlerResult",
    "Failure",
    "DispatchResult",
    "Handler",
    "PathVars",
    # Body
    "BodyReader",
    # Tables
    "LegacyRouteTable",
    "PatternRoute",
    "PatternRouteTable",
    "RouteTable",
    "build_route_table",
    "compile_route_pattern",
    "NO_PARAM",
    "WITH_PARAM",
    # Dispatch
    "dispatch",
    "normalize_handler_result",
]
