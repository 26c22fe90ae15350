"""
Dispatcher
==========
Given a route table, the request path and method, call the matching
handler and normalize what it returns.

Handler exceptions are not caught here: ``StorageError`` and programming
errors propagate to the HTTP boundary, which logs and masks them.
"""

from collections.abc import Mapping
from typing import Any, Optional

import structlog

from ..outcomes import FailureReason
from .body import BodyReader
from .models import DispatchResult, Failure, HandlerResult
from .tables import RouteTable, build_route_table

logger = structlog.get_logger(__name__)


def normalize_handler_result(value: Any) -> DispatchResult:
    """Turn a handler's return value into a dispatch result."""
    if isinstance(value, HandlerResult):
        return DispatchResult.success(value)
    if isinstance(value, Failure):
        return DispatchResult(failure=value)
    if isinstance(value, Mapping):
        result = HandlerResult.from_mapping(value)
        if result is not None:
            return DispatchResult.success(result)
    return DispatchResult.fail(FailureReason.INVALID_HANDLER_RESPONSE)


def dispatch(
    route_table: Any,
    path: str,
    method: str,
    body: Optional[BodyReader] = None,
) -> DispatchResult:
    """
    Route one request.

    Args:
        route_table: A typed route table, or a raw legacy/pattern description
        path: Request path
        method: HTTP method
        body: Request body reader (absent body when omitted)

    Returns:
        DispatchResult with the handler result, or a failure among
        NOT_FOUND, METHOD_NOT_ALLOWED, INVALID_INPUT,
        INVALID_HANDLER_RESPONSE or a reason declared by the handler
    """
    table: RouteTable = build_route_table(route_table)
    body = body if body is not None else BodyReader()

    if table.reject_empty_body and body.is_structurally_empty():
        logger.info("dispatch_rejected", reason=FailureReason.INVALID_INPUT.value, path=path)
        return DispatchResult.fail(FailureReason.INVALID_INPUT)

    handler, path_vars, failure = table.resolve(path, method)
    if failure is not None:
        logger.debug("dispatch_unmatched", reason=failure.reason, method=method, path=path)
        return DispatchResult(failure=failure)

    outcome = normalize_handler_result(handler(path_vars, body.json()))
    if not outcome.ok:
        logger.info("dispatch_failed", reason=outcome.failure.reason, method=method, path=path)
    return outcome
