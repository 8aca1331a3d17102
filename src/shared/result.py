"""Outcome of a user-facing operation."""

from dataclasses import dataclass
from typing import Any

SIGN_IN_REQUIRED = "sign_in_required"
VALIDATION = "validation"
NETWORK = "network"
REJECTED = "rejected"
FORCED_LOGOUT = "forced_logout"
BUSY = "busy"


@dataclass(frozen=True)
class OperationResult:
    """Success/failure signal plus a message fit for display.

    ``code`` classifies failures (see the module constants) so callers can,
    for instance, redirect to sign-in without parsing the message.
    """

    success: bool
    message: str | None = None
    code: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, message: str | None = None, data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: str | None = None, data: Any = None) -> "OperationResult":
        return cls(success=False, message=message, code=code, data=data)

    @property
    def requires_sign_in(self) -> bool:
        return self.code in (SIGN_IN_REQUIRED, FORCED_LOGOUT)
