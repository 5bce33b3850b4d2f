"""
Ledger operation results.

Business failures are returned as values, not raised, so the
transaction runner can decide between commit and rollback.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from backend.app.models.ledger_enums import LedgerErrorKind


@dataclass(frozen=True)
class LedgerError:
    """A terminal ledger failure: one of the three error kinds plus a message."""
    kind: LedgerErrorKind
    message: str


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of a ledger operation."""
    error: Optional[LedgerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "LedgerResult":
        return cls()

    @classmethod
    def failure(cls, kind: LedgerErrorKind, message: str) -> "LedgerResult":
        return cls(error=LedgerError(kind=kind, message=message))

    @classmethod
    def unauthenticated(cls, message: str = "Sign in required.") -> "LedgerResult":
        return cls.failure(LedgerErrorKind.UNAUTHENTICATED, message)

    @classmethod
    def invalid_argument(cls, message: str) -> "LedgerResult":
        return cls.failure(LedgerErrorKind.INVALID_ARGUMENT, message)

    @classmethod
    def failed_precondition(cls, message: str) -> "LedgerResult":
        return cls.failure(LedgerErrorKind.FAILED_PRECONDITION, message)

    def to_response(self) -> Dict[str, Any]:
        """Acknowledgement body returned to callers on success."""
        return {"success": self.ok}
