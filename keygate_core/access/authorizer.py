"""
Authorizer
==========
API key validation, permission checks (routes/scopes) and rate limiting,
in that order, as a single decision per request.
"""

from typing import Any, Mapping, Optional, Tuple

import structlog

from ..api_keys import mask_api_key
from ..config import (
    DEFAULT_MAX_REQUESTS,
    DEFAULT_WINDOW_SECONDS,
    AccessConfig,
    KeyDefinition,
)
from ..outcomes import FailureReason
from ..rate_limit import BaseRateLimiter
from .identity import extract_api_key
from .models import AuthResult
from .permissions import is_permitted

logger = structlog.get_logger(__name__)


class Authorizer:
    """
    Authorize requests against the access configuration.

    The rate limiter is only consulted once a key is known and permitted, so
    rejected requests never consume budget.
    """

    def __init__(self, config: AccessConfig, rate_limiter: BaseRateLimiter):
        self.config = config
        self.rate_limiter = rate_limiter

    def resolve_rate_limit(self, definition: KeyDefinition) -> Tuple[int, int]:
        """
        Window and cap for a key: per-key override field by field, then the
        global default. Non-positive values are coerced to 60.
        """
        default = self.config.rate_limit.default
        override = definition.rate_limit

        window = default.window_seconds
        maximum = default.max_requests
        if override is not None:
            if override.window_seconds is not None:
                window = override.window_seconds
            if override.max_requests is not None:
                maximum = override.max_requests

        if window <= 0:
            window = DEFAULT_WINDOW_SECONDS
        if maximum <= 0:
            maximum = DEFAULT_MAX_REQUESTS
        return window, maximum

    def authorize(
        self,
        method: str,
        path: str,
        headers: Mapping[str, Any],
        query_params: Optional[Mapping[str, Any]] = None,
    ) -> AuthResult:
        """
        Authorize a request by HTTP method and path.

        Returns:
            AuthResult with decision ALLOW and the key definition, or DENY
            with one of NO_KEY, INVALID_KEY, NO_PERMISSION, RATE_LIMIT
        """
        key = extract_api_key(headers, query_params)
        if not key:
            return self._deny(FailureReason.NO_KEY, None, method, path)

        definition = self.config.definition_for(key)
        if definition is None:
            return self._deny(FailureReason.INVALID_KEY, key, method, path)

        if not is_permitted(definition, method, path):
            return self._deny(FailureReason.NO_PERMISSION, key, method, path)

        window, maximum = self.resolve_rate_limit(definition)
        if not self.rate_limiter.check_and_consume(key, window, maximum):
            return self._deny(FailureReason.RATE_LIMIT, key, method, path)

        logger.debug("auth_allowed", key=mask_api_key(key), method=method, path=path)
        return AuthResult.allow(key, definition)

    def _deny(
        self,
        reason: FailureReason,
        key: Optional[str],
        method: str,
        path: str,
    ) -> AuthResult:
        logger.warning(
            "auth_denied",
            reason=reason.value,
            key=mask_api_key(key),
            method=method,
            path=path,
        )
        return AuthResult.deny(reason, key)
