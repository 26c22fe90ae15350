"""
CORS Setup
==========
CORS configuration for the gateway on top of ``CORSMiddleware``.

Preflight requests are answered by the middleware before authorization;
any other ``OPTIONS`` request is answered by ``options_endpoint``.
"""

from typing import List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response

logger = structlog.get_logger(__name__)

DEFAULT_ALLOW_METHODS = ["GET", "POST", "PUT", "OPTIONS"]
DEFAULT_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-API-Key"]


class NoContentCORSMiddleware(CORSMiddleware):
    """``CORSMiddleware`` answering accepted preflight requests with 204."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        if response.status_code != 200:
            return response
        headers = {
            name: value
            for name, value in response.headers.items()
            if name not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


def setup_cors(
    app: FastAPI,
    origins: Optional[List[str]] = None,
    allow_credentials: bool = False,
    allow_methods: Optional[List[str]] = None,
    allow_headers: Optional[List[str]] = None,
) -> None:
    """
    Configure CORS middleware.

    Args:
        app: FastAPI application instance
        origins: Allowed origins (default: any origin)
        allow_credentials: Allow cookies (default: False, keys travel in headers)
        allow_methods: Allowed HTTP methods (default: GET, POST, PUT, OPTIONS)
        allow_headers: Allowed request headers (default: the key headers)
    """
    origins = origins or ["*"]
    if "*" in origins and len(origins) > 1:
        logger.warning("cors_wildcard_with_explicit_origins", origins=origins)

    app.add_middleware(
        NoContentCORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=allow_methods or DEFAULT_ALLOW_METHODS,
        allow_headers=allow_headers or DEFAULT_ALLOW_HEADERS,
    )

    logger.info("cors_configured", origins_count=len(origins))


def options_endpoint(request: Request) -> Response:
    """``OPTIONS`` on any path, without authorization."""
    return Response(status_code=204)
