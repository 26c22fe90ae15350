"""
Access Control Module
=====================
API key extraction, permission evaluation and authorization.
"""

# Re-export all public APIs
from .models import AuthResult, READ_SCOPE, WRITE_SCOPE
from .identity import (
    extract_api_key,
    method_scope,
    route_matches,
    compile_path_template,
    API_KEY_HEADER,
    API_KEY_QUERY_PARAM,
)
from .permissions import is_permitted
from .authorizer import Authorizer

__all__ = [
    # Models
    "AuthResult",
    "READ_SCOPE",
    "WRITE_SCOPE",
    # Identity
    "extract_api_key",
    "method_scope",
    "route_matches",
    "compile_path_template",
    "API_KEY_HEADER",
    "API_KEY_QUERY_PARAM",
    # Permissions
    "is_permitted",
    # Authorizer
    "Authorizer",
]
