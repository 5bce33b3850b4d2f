"""
Ledger enumerations for the Harvest Wallet.
"""

import enum


class LedgerErrorKind(str, enum.Enum):
    """Ledger error kind enumeration."""
    UNAUTHENTICATED = "unauthenticated"  # No validated caller identity
    INVALID_ARGUMENT = "invalid-argument"  # Malformed or missing request fields
    FAILED_PRECONDITION = "failed-precondition"  # Business rule violated by current state
