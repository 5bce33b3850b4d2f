"""
Authorization Gate for ledger operations.

Rejects unauthenticated callers before any transaction starts.
"""

from dataclasses import dataclass
from typing import Optional

from backend.app.domain.wallet.ledger_result import LedgerResult


@dataclass(frozen=True)
class CallerContext:
    """Validated identity of the caller."""
    uid: str
    username: Optional[str] = None


def authorize(caller: Optional[CallerContext]) -> Optional[LedgerResult]:
    """
    Check the caller carries a validated identity.

    Returns:
        None when the caller may proceed, an Unauthenticated result otherwise
    """
    if caller is None or not caller.uid:
        return LedgerResult.unauthenticated("Sign in required.")
    return None
