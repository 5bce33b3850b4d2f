"""
Harvest Wallet API Endpoints.

Callable ledger operations (top-up, single payout, batch payout) plus
read-only balance views. Every route requires a bearer token.
"""

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Optional

from backend.app.core.dependencies import get_caller_context
from backend.app.core.exceptions import LedgerRequestError, ResourceNotFoundError
from backend.app.db.ledger_storage import LedgerStorage
from backend.app.db.session import get_db, get_ledger_storage
from backend.app.domain.wallet.authorization import CallerContext, authorize
from backend.app.domain.wallet.ledger_result import LedgerResult
from backend.app.domain.wallet.wallet_service import HarvestWalletService
from backend.app.schemas.harvest_wallet import (
    CollectionUsageResponse, HarvestWalletResponse, WalletAckResponse
)

router = APIRouter(prefix="/harvest-wallets", tags=["Harvest Wallet"])


def _acknowledge(result: LedgerResult) -> WalletAckResponse:
    """Turn a ledger result into the success body, or raise the mapped error."""
    if not result.ok:
        raise LedgerRequestError(result.error.kind, result.error.message)
    return WalletAckResponse(**result.to_response())


def _require_caller(caller: Optional[CallerContext]) -> CallerContext:
    denied = authorize(caller)
    if denied:
        raise LedgerRequestError(denied.error.kind, denied.error.message)
    return caller


@router.post("/top-up", response_model=WalletAckResponse)
async def add_harvest_wallet_cash(
    payload: Any = Body(None),
    caller: Optional[CallerContext] = Depends(get_caller_context),
    storage: LedgerStorage = Depends(get_ledger_storage)
):
    """
    Credit the wallet of a (company, project, crop) with incoming cash.
    """
    result = await HarvestWalletService.add_cash(storage, caller, payload)
    return _acknowledge(result)


@router.post("/payouts", response_model=WalletAckResponse)
async def pay_picker_from_wallet(
    payload: Any = Body(None),
    caller: Optional[CallerContext] = Depends(get_caller_context),
    storage: LedgerStorage = Depends(get_ledger_storage)
):
    """
    Pay one picker from the wallet and charge the collection's usage.
    """
    result = await HarvestWalletService.pay_picker(storage, caller, payload)
    return _acknowledge(result)


@router.post("/payouts/batch", response_model=WalletAckResponse)
async def pay_pickers_from_wallet_batch(
    payload: Any = Body(None),
    caller: Optional[CallerContext] = Depends(get_caller_context),
    storage: LedgerStorage = Depends(get_ledger_storage)
):
    """
    Pay all eligible pickers of a collection in one atomic batch.
    """
    result = await HarvestWalletService.pay_pickers_batch(storage, caller, payload)
    return _acknowledge(result)


@router.get("/{wallet_id}", response_model=HarvestWalletResponse)
async def get_harvest_wallet(
    wallet_id: str = Path(..., description="Wallet ID"),
    caller: Optional[CallerContext] = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the shared wallet balance for a project/crop.
    """
    _require_caller(caller)

    wallet = await HarvestWalletService.get_wallet(db, wallet_id)
    if not wallet:
        raise ResourceNotFoundError("Harvest wallet", wallet_id)

    return wallet


@router.get("/{wallet_id}/collections/{collection_id}/usage", response_model=CollectionUsageResponse)
async def get_collection_usage(
    wallet_id: str = Path(..., description="Wallet ID"),
    collection_id: str = Path(..., description="Harvest collection ID"),
    caller: Optional[CallerContext] = Depends(get_caller_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Get how much cash a collection has drawn from the wallet.
    """
    _require_caller(caller)

    total_deducted = await HarvestWalletService.get_collection_usage(db, wallet_id, collection_id)
    return CollectionUsageResponse(
        wallet_id=wallet_id,
        collection_id=collection_id,
        total_deducted=total_deducted
    )
