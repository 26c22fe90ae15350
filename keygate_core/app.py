"""
Keygate HTTP Application
========================
FastAPI application factory. Every collaborator is either passed in or
built from ``Settings``; nothing is shared at module level.

Usage:
    from keygate_core.app import create_app

    app = create_app()
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from . import __version__
from .access import Authorizer
from .audit import AccessLogger
from .config import AccessConfig, Settings, load_access_config
from .gateway import GatewayRequest, RequestGateway
from .health import create_health_router
from .items import build_item_routes
from .logging_config import bind_request_context
from .middleware import options_endpoint, setup_cors
from .rate_limit import BaseRateLimiter, FileRateLimiter
from .routing import build_route_table
from .storage import JsonItemStore

logger = structlog.get_logger(__name__)


class GatewayEndpoint:
    """ASGI endpoint passing requests of any method to the gateway."""

    def __init__(self, gateway: RequestGateway):
        self.gateway = gateway

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        bind_request_context(
            request_id=request.headers.get("x-request-id"),
            method=request.method,
            path=request.url.path,
        )
        gateway_request = GatewayRequest(
            method=request.method,
            path=request.url.path,
            headers=request.headers,
            query_params=request.query_params,
            body=await request.body(),
            peer=request.client.host if request.client else None,
        )
        response = await run_in_threadpool(self.gateway.handle, gateway_request)
        await response(scope, receive, send)


def create_app(
    settings: Optional[Settings] = None,
    *,
    access_config: Optional[AccessConfig] = None,
    route_table: Any = None,
    item_store: Optional[JsonItemStore] = None,
    rate_limiter: Optional[BaseRateLimiter] = None,
    access_logger: Optional[AccessLogger] = None,
) -> FastAPI:
    """
    Create the application.

    Args:
        settings: Process settings (``Settings.from_env()`` when omitted)
        access_config: API keys and rate limits (loaded from
            ``settings.config_file`` when omitted)
        route_table: Typed or raw route table (item endpoints when omitted)
        item_store: Item store (``settings.data_file`` when omitted)
        rate_limiter: Rate limiter (file-based under ``settings.rate_limit_dir``
            when omitted)
        access_logger: Access log writer (``settings.access_log_file`` when
            omitted)

    Returns:
        Configured FastAPI app
    """
    settings = settings or Settings.from_env()
    if access_config is None:
        access_config = load_access_config(settings.config_file)
    if item_store is None:
        item_store = JsonItemStore(settings.data_file)
    if rate_limiter is None:
        rate_limiter = FileRateLimiter(settings.rate_limit_dir)
    if access_logger is None:
        access_logger = AccessLogger(settings.access_log_file)

    table = build_route_table(route_table) if route_table is not None else build_item_routes(item_store)
    gateway = RequestGateway(
        Authorizer(access_config, rate_limiter),
        table,
        access_logger,
        mask_storage_errors=settings.mask_storage_errors,
    )

    app = FastAPI(
        title=settings.service_name,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.gateway = gateway

    setup_cors(app, origins=settings.cors_origins)
    app.include_router(create_health_router(settings.service_name, __version__, item_store))
    app.add_api_route(
        "/{full_path:path}",
        options_endpoint,
        methods=["OPTIONS"],
        include_in_schema=False,
    )
    # Not a plain function, so the route matches every HTTP method
    app.add_route("/{full_path:path}", GatewayEndpoint(gateway), include_in_schema=False)

    logger.info(
        "app_created",
        service=settings.service_name,
        keys=len(access_config.keys),
        routes=type(table).__name__,
    )
    return app
