"""
Permission Evaluation
=====================
Decides whether a key definition grants (method, path).

Explicit route grants win. Scopes are consulted only when a key declares no
route grants at all; a non-matching route list is a denial.
"""

from ..config import KeyDefinition
from .identity import method_scope, route_matches


def is_permitted(definition: KeyDefinition, method: str, path: str) -> bool:
    if definition.routes:
        return any(route_matches(rule, method, path) for rule in definition.routes)
    return method_scope(method) in definition.scopes
