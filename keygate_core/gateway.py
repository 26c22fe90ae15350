"""
Request Gateway
===============
The per-request pipeline behind every non-health route:

    authorize -> dispatch -> render -> access log

Each stage returns a value; the gateway is the only place where handler
exceptions are caught. Every refusal is rendered as the same masked 404,
and the distinct reason is written to the access log.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog
from starlette.responses import Response

from .access import Authorizer
from .api_keys import mask_api_key
from .audit import AccessLogger, client_ip
from .exceptions import StorageError
from .outcomes import FailureReason, Outcome
from .responses import json_response, not_found_response, unavailable_response
from .routing import BodyReader, HandlerResult, RouteTable, dispatch

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GatewayRequest:
    """Transport-neutral view of one HTTP request."""
    method: str
    path: str
    headers: Mapping[str, Any]
    query_params: Mapping[str, Any]
    body: bytes = b""
    peer: Optional[str] = None

    @property
    def ip(self) -> str:
        return client_ip(self.headers, self.peer)


class RequestGateway:
    """
    Authorize, dispatch and audit requests.

    Args:
        authorizer: Key, permission and rate limit checks
        route_table: Typed route table
        access_logger: JSON-lines access log
        mask_storage_errors: Render storage faults as 404 instead of 503
    """

    def __init__(
        self,
        authorizer: Authorizer,
        route_table: RouteTable,
        access_logger: AccessLogger,
        mask_storage_errors: bool = True,
    ):
        self.authorizer = authorizer
        self.route_table = route_table
        self.access_logger = access_logger
        self.mask_storage_errors = mask_storage_errors

    def handle(self, request: GatewayRequest) -> Response:
        try:
            auth = self.authorizer.authorize(
                request.method, request.path, request.headers, request.query_params
            )
        except Exception:
            logger.exception("authorization_failed", method=request.method, path=request.path)
            return self._refuse(request, FailureReason.INTERNAL_ERROR.value, None)

        if not auth.allowed:
            return self._refuse(request, auth.reason_code.value, auth.key)

        try:
            outcome = dispatch(
                self.route_table, request.path, request.method, BodyReader(request.body)
            )
        except StorageError as e:
            logger.error(
                "storage_failure",
                error=e.message,
                method=request.method,
                path=request.path,
            )
            if self.mask_storage_errors:
                return self._refuse(request, e.reason, auth.key)
            return self._audit(request, unavailable_response(), Outcome.DENY.value, e.reason, auth.key)
        except Exception:
            logger.exception(
                "handler_failed",
                method=request.method,
                path=request.path,
                key=mask_api_key(auth.key),
            )
            return self._refuse(request, FailureReason.INTERNAL_ERROR.value, auth.key)

        if not outcome.ok:
            return self._refuse(request, outcome.failure.reason, outcome.failure.key or auth.key)

        return self._render(request, outcome.result, auth.key)

    def _render(self, request: GatewayRequest, result: HandlerResult, key: Optional[str]) -> Response:
        response = json_response(result.data, result.status, result.headers)
        return self._audit(request, response, result.outcome, result.reason, result.key or key)

    def _refuse(self, request: GatewayRequest, reason: str, key: Optional[str]) -> Response:
        return self._audit(request, not_found_response(), Outcome.DENY.value, reason, key)

    def _audit(
        self,
        request: GatewayRequest,
        response: Response,
        outcome: str,
        reason: str,
        key: Optional[str],
    ) -> Response:
        self.access_logger.log_access(
            ip=request.ip,
            method=request.method,
            path=request.path,
            status=response.status_code,
            outcome=outcome,
            reason=reason,
            key=key,
        )
        return response
