"""
Identity Extraction
===================
API key extraction from request metadata, method scopes, and route rule
matching for ``"METHOD:/path/{param}"`` grants.
"""

import re
from functools import lru_cache
from typing import Any, Mapping, Optional, Pattern

from .models import READ_SCOPE, WRITE_SCOPE

API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "authorization"
API_KEY_QUERY_PARAM = "api_key"

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

_AUTHORIZATION_SCHEME = re.compile(r"^ApiKey\s+(.+)$", re.IGNORECASE | re.DOTALL)
_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup over any mapping."""
    for header_name, value in headers.items():
        if header_name.lower() == name:
            return str(value)
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def extract_api_key(
    headers: Mapping[str, Any],
    query_params: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """
    Retrieve the API key from headers or query parameters.

    Looks for, in order: ``X-Api-Key: <key>``, ``Authorization: ApiKey <key>``
    and ``?api_key=<key>``. Blank values count as absent.

    Returns:
        API key or None when not present
    """
    key = _clean(_header(headers, API_KEY_HEADER))
    if key:
        return key

    authorization = _header(headers, AUTHORIZATION_HEADER)
    if authorization is not None:
        match = _AUTHORIZATION_SCHEME.match(authorization.strip())
        if match:
            key = _clean(match.group(1))
            if key:
                return key

    if query_params is not None:
        value = query_params.get(API_KEY_QUERY_PARAM)
        if value is not None:
            return _clean(str(value))

    return None


def method_scope(method: str) -> str:
    """Scope required by an HTTP method: 'read' for safe methods, otherwise 'write'."""
    return READ_SCOPE if method.upper() in READ_METHODS else WRITE_SCOPE


@lru_cache(maxsize=1024)
def compile_path_template(template: str) -> Pattern[str]:
    """
    Compile ``/items/{id}`` style templates into an anchored regex.

    ``{id}`` matches digits only; any other placeholder matches one path
    segment. Everything else is literal.
    """
    parts = []
    position = 0
    for placeholder in _PLACEHOLDER.finditer(template):
        parts.append(re.escape(template[position:placeholder.start()]))
        parts.append(r"(\d+)" if placeholder.group(1) == "id" else r"([^/]+)")
        position = placeholder.end()
    parts.append(re.escape(template[position:]))
    return re.compile("^" + "".join(parts) + "$")


def route_matches(rule: str, method: str, path: str) -> bool:
    """
    Match a route rule like "GET:/items/{id}" against method and path.

    Returns:
        True if the rule matches; False for malformed rules
    """
    declared_method, separator, template = rule.partition(":")
    if not separator:
        return False
    if declared_method.upper() != method.upper():
        return False
    return compile_path_template(template).fullmatch(path) is not None
