"""
Response Rendering
==================
JSON responses for handler results and masked failures.

CRITICAL: Never tell the caller why a request was refused. Every failure
renders the same not-found body; the reason goes to the access log only.
"""

from typing import Any, Dict, Optional

from starlette.responses import JSONResponse, Response

NOT_FOUND_BODY = {"error": "Not found"}
UNAVAILABLE_BODY = {"error": "Service unavailable"}


class UTF8JSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def json_response(
    data: Any,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Render a handler payload."""
    return UTF8JSONResponse(content=data, status_code=status_code, headers=headers or None)


def not_found_response() -> Response:
    """The masked response used for every refused request."""
    return UTF8JSONResponse(content=NOT_FOUND_BODY, status_code=404)


def unavailable_response() -> Response:
    """Unmasked storage failure, when masking is disabled."""
    return UTF8JSONResponse(content=UNAVAILABLE_BODY, status_code=503)
