"""
Wallet Account Resolver.

Derives the deterministic key of a harvest wallet. Follows priority:
1. Explicit wallet id supplied by the caller (pre-resolved under another key scheme)
2. "{companyId}_{projectId}_{cropType}"
"""

from typing import Optional


WALLET_KEY_SEPARATOR = "_"


class WalletKeyError(ValueError):
    """Raised when a required wallet identity component is missing."""
    pass


class WalletResolver:

    @staticmethod
    def resolve_wallet_id(
        company_id: Optional[str],
        project_id: Optional[str],
        crop_type: Optional[str],
        wallet_id: Optional[str] = None,
    ) -> str:
        """
        Resolve the wallet key for a harvest season.

        The identity components are required even when an explicit
        wallet id is given, since they are mirrored onto usage and log rows.

        Raises:
            WalletKeyError: If companyId, projectId or cropType is missing.
        """
        if not company_id or not project_id or not crop_type:
            raise WalletKeyError("companyId, projectId and cropType are required.")

        if wallet_id:
            return wallet_id

        return WALLET_KEY_SEPARATOR.join([company_id, project_id, crop_type])

    @staticmethod
    def resolve_usage_id(wallet_id: str, collection_id: str) -> str:
        """Key of the CollectionCashUsage row for a (wallet, collection) pair."""
        if not wallet_id or not collection_id:
            raise WalletKeyError("walletId and collectionId are required.")

        return f"{wallet_id}{WALLET_KEY_SEPARATOR}{collection_id}"
