"""
Harvest Wallet Schemas.

Request bodies use the camelCase field names of the callable interface.
Amounts are strict integers in minor currency units. Identity fields are
used exactly as sent when deriving wallet keys.
"""

from pydantic import BaseModel, Field, StrictStr, field_validator
from datetime import datetime
from typing import Optional, List

# Largest value a BigInteger ledger column can hold
MAX_LEDGER_AMOUNT = 2**63 - 1


class WalletIdentityRequest(BaseModel):
    """Identity fields shared by every ledger request."""
    company_id: StrictStr = Field(..., alias="companyId", min_length=1)
    project_id: StrictStr = Field(..., alias="projectId", min_length=1)
    crop_type: StrictStr = Field(..., alias="cropType", min_length=1)

    class Config:
        populate_by_name = True


class WalletTopUpRequest(WalletIdentityRequest):
    """Schema for crediting a wallet with incoming cash."""
    amount: int = Field(..., gt=0, le=MAX_LEDGER_AMOUNT, strict=True)


class PickerPayoutRequest(WalletIdentityRequest):
    """Schema for paying one picker from a wallet."""
    collection_id: StrictStr = Field(..., alias="collectionId", min_length=1)
    payout_amount: int = Field(..., alias="payoutAmount", gt=0, le=MAX_LEDGER_AMOUNT, strict=True)
    picker_id: Optional[StrictStr] = Field(None, alias="pickerId")
    wallet_id: Optional[StrictStr] = Field(None, alias="walletId")


class BatchPayoutRequest(WalletIdentityRequest):
    """Schema for paying several pickers from a wallet in one transaction."""
    collection_id: StrictStr = Field(..., alias="collectionId", min_length=1)
    picker_ids: List[StrictStr] = Field(..., alias="pickerIds", min_length=1)

    @field_validator("picker_ids")
    @classmethod
    def dedupe_picker_ids(cls, v: List[str]) -> List[str]:
        """Reject blank ids and collapse duplicates, keeping first occurrence."""
        seen = []
        for picker_id in v:
            if not picker_id:
                raise ValueError("pickerIds must not contain empty ids")
            if picker_id not in seen:
                seen.append(picker_id)
        return seen


class WalletAckResponse(BaseModel):
    """Acknowledgement returned by ledger operations."""
    success: bool


class HarvestWalletResponse(BaseModel):
    """Schema for displaying a harvest wallet."""
    id: str
    company_id: str
    project_id: str
    crop_type: str
    cash_received_total: int
    cash_paid_out_total: int
    current_balance: int
    last_updated_at: datetime

    class Config:
        from_attributes = True


class CollectionUsageResponse(BaseModel):
    """Schema for displaying cash drawn by one collection."""
    wallet_id: str
    collection_id: str
    total_deducted: int
