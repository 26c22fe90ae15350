"""
Routing Models
==============
Handler results, handler-declared failures and dispatch outcomes.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..outcomes import OK_REASON, FailureReason, Outcome

PathVars = Union[Dict[str, Any], List[Any]]
Handler = Callable[[PathVars, Any], Any]


@dataclass
class HandlerResult:
    """Normalized handler output, ready for rendering and access logging."""
    data: Any
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    outcome: str = Outcome.ALLOW.value
    reason: str = OK_REASON
    key: Optional[str] = None

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any]) -> Optional["HandlerResult"]:
        """Build a result from a ``{"data": ...}`` mapping; None if ``data`` is missing."""
        if "data" not in value:
            return None
        outcome = value.get("outcome") or Outcome.ALLOW
        reason = value.get("reason") or OK_REASON
        return cls(
            data=value["data"],
            status=int(value.get("status") or 200),
            headers={str(k): str(v) for k, v in (value.get("headers") or {}).items()},
            outcome=outcome.value if isinstance(outcome, Outcome) else str(outcome),
            reason=reason.value if isinstance(reason, FailureReason) else str(reason),
            key=value.get("key"),
        )


@dataclass(frozen=True)
class Failure:
    """A request that ended without a handler result."""
    reason: str
    key: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.reason, FailureReason):
            object.__setattr__(self, "reason", self.reason.value)


@dataclass(frozen=True)
class DispatchResult:
    """Either a handler result or a failure."""
    result: Optional[HandlerResult] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, result: HandlerResult) -> "DispatchResult":
        return cls(result=result)

    @classmethod
    def fail(cls, reason: Union[str, FailureReason], key: Optional[str] = None) -> "DispatchResult":
        return cls(failure=Failure(reason, key))
