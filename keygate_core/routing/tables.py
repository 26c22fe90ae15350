"""
Route Tables
============
Two route table shapes, as distinct types:

- ``LegacyRouteTable``: base segment -> mode -> HTTP method -> handler, where
  mode is ``noParam`` (``/base``) or ``withParam`` (``/base/<digits>``).
- ``PatternRouteTable``: ordered regex patterns with captures.

``build_route_table`` converts the raw dict/list descriptions once.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Pattern, Sequence, Tuple, Union

from ..outcomes import FailureReason
from .models import Failure, Handler, PathVars

NO_PARAM = "noParam"
WITH_PARAM = "withParam"

_WITH_PARAM_PATH = re.compile(r"/([^/]+)/([0-9]+)")
_NO_PARAM_PATH = re.compile(r"/([^/]+)")
_DIGITS = re.compile(r"[0-9]+")

# Delimiters accepted around pattern strings, e.g. "#^/api/users/(\d+)$#i"
PATTERN_DELIMITERS = "#~!@%|"
_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,
}

Resolution = Tuple[Optional[Handler], PathVars, Optional[Failure]]


def _callable_or_none(handler: Any) -> Optional[Handler]:
    return handler if callable(handler) else None


class LegacyRouteTable:
    """Fixed two-level lookup: ``routes[base][mode][METHOD]``."""

    reject_empty_body = False

    def __init__(
        self,
        routes: Mapping[str, Mapping[str, Mapping[str, Any]]],
        reject_empty_body: Optional[bool] = None,
    ):
        self.routes = routes
        if reject_empty_body is not None:
            self.reject_empty_body = reject_empty_body

    def resolve(self, path: str, method: str) -> Resolution:
        path_vars: Dict[str, Any] = {}
        match = _WITH_PARAM_PATH.fullmatch(path)
        if match:
            base, mode = match.group(1), WITH_PARAM
            path_vars["id"] = int(match.group(2))
        else:
            match = _NO_PARAM_PATH.fullmatch(path)
            if not match:
                return None, path_vars, Failure(FailureReason.NOT_FOUND)
            base, mode = match.group(1), NO_PARAM

        modes = self.routes.get(base)
        if not isinstance(modes, Mapping):
            return None, path_vars, Failure(FailureReason.NOT_FOUND)

        methods = modes.get(mode)
        if not isinstance(methods, Mapping):
            return None, path_vars, Failure(FailureReason.NOT_FOUND)

        handler = _callable_or_none(methods.get(method.upper()))
        if handler is None:
            return None, path_vars, Failure(FailureReason.NOT_FOUND)

        return handler, path_vars, None


def compile_route_pattern(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    """Compile a route pattern, stripping delimiters and trailing flags if present."""
    if isinstance(pattern, re.Pattern):
        return pattern

    delimiter = pattern[:1]
    end = pattern.rfind(delimiter) if delimiter else -1
    if delimiter in PATTERN_DELIMITERS and delimiter and end > 0:
        flags = 0
        for flag in pattern[end + 1:]:
            if flag not in _PATTERN_FLAGS:
                raise ValueError(f"Unsupported pattern flag {flag!r} in {pattern!r}")
            flags |= _PATTERN_FLAGS[flag]
        return re.compile(pattern[1:end], flags)

    return re.compile(pattern)


def _coerce_capture(value: Optional[str]) -> Any:
    if value is not None and _DIGITS.fullmatch(value):
        return int(value)
    return value


@dataclass
class PatternRoute:
    """One pattern table entry."""
    pattern: Pattern[str]
    methods: Dict[str, Handler]
    path_vars: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        self.pattern = compile_route_pattern(self.pattern)
        self.methods = {str(m).upper(): h for m, h in dict(self.methods).items()}
        if self.path_vars is not None:
            self.path_vars = tuple(self.path_vars)

    @classmethod
    def from_mapping(cls, entry: Mapping[str, Any]) -> "PatternRoute":
        return cls(
            pattern=entry["pattern"],
            methods=entry.get("methods") or {},
            path_vars=entry.get("pathVars", entry.get("path_vars")),
        )

    def bind(self, match: "re.Match[str]") -> PathVars:
        """Captured groups as named (declared names) or positional path vars."""
        groups = match.groups()
        if self.path_vars:
            return {
                name: _coerce_capture(groups[index]) if index < len(groups) else None
                for index, name in enumerate(self.path_vars)
            }
        return [_coerce_capture(group) for group in groups]


@dataclass
class PatternRouteTable:
    """Ordered pattern routes; the first structural match wins."""
    routes: List[PatternRoute] = field(default_factory=list)
    reject_empty_body: bool = True

    def resolve(self, path: str, method: str) -> Resolution:
        for route in self.routes:
            match = route.pattern.search(path)
            if match is None:
                continue
            handler = _callable_or_none(route.methods.get(method.upper()))
            if handler is None:
                return None, {}, Failure(FailureReason.METHOD_NOT_ALLOWED)
            return handler, route.bind(match), None
        return None, {}, Failure(FailureReason.NOT_FOUND)


RouteTable = Union[LegacyRouteTable, PatternRouteTable]


def _is_pattern_entry(entry: Any) -> bool:
    return isinstance(entry, PatternRoute) or (
        isinstance(entry, Mapping) and "pattern" in entry
    )


def build_route_table(raw: Any) -> RouteTable:
    """
    Convert a raw route description into a typed route table.

    A mapping is the legacy shape; a sequence whose first element is a pattern
    entry is the pattern shape.

    Raises:
        TypeError: if the shape is not recognised
    """
    if isinstance(raw, (LegacyRouteTable, PatternRouteTable)):
        return raw

    if isinstance(raw, Mapping):
        return LegacyRouteTable(raw)

    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        if not raw:
            return PatternRouteTable([])
        if _is_pattern_entry(raw[0]):
            return PatternRouteTable([
                entry if isinstance(entry, PatternRoute) else PatternRoute.from_mapping(entry)
                for entry in raw
            ])

    raise TypeError(f"Unrecognised route table shape: {type(raw).__name__}")
