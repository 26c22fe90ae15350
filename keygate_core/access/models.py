"""
Access Models
=============
Result of an authorization check.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import KeyDefinition
from ..outcomes import FailureReason, Outcome

READ_SCOPE = "read"
WRITE_SCOPE = "write"


@dataclass(frozen=True)
class AuthResult:
    """Result of authorizing one request."""
    decision: Outcome
    key: Optional[str] = None
    definition: Optional[KeyDefinition] = None
    reason_code: Optional[FailureReason] = None

    @property
    def allowed(self) -> bool:
        return self.decision == Outcome.ALLOW

    @classmethod
    def allow(cls, key: str, definition: KeyDefinition) -> "AuthResult":
        return cls(decision=Outcome.ALLOW, key=key, definition=definition)

    @classmethod
    def deny(cls, reason: FailureReason, key: Optional[str] = None) -> "AuthResult":
        return cls(decision=Outcome.DENY, key=key, reason_code=reason)
