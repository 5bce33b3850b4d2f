"""
Harvest Wallet Service (Domain Logic).

Moves money between a harvest wallet and picker payouts.
Every operation runs as one ledger transaction and conserves funds:
current_balance == cash_received_total - cash_paid_out_total >= 0.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.ledger_storage import LedgerStorage, upsert_record
from backend.app.domain.wallet.authorization import CallerContext, authorize
from backend.app.domain.wallet.ledger_result import LedgerResult
from backend.app.domain.wallet.wallet_resolver import WalletKeyError, WalletResolver
from backend.app.models.collection_cash_usage import CollectionCashUsage
from backend.app.models.harvest_payment_batch import HarvestPaymentBatch
from backend.app.models.harvest_picker import HarvestPicker
from backend.app.models.harvest_wallet import HarvestWallet
from backend.app.models.harvest_wallet_payment import HarvestWalletPayment
from backend.app.schemas.harvest_wallet import (
    MAX_LEDGER_AMOUNT,
    BatchPayoutRequest,
    PickerPayoutRequest,
    WalletTopUpRequest,
)
from backend.app.services.audit import AuditAction, log_event

logger = logging.getLogger("harvest_wallet")

RequestT = TypeVar("RequestT", bound=BaseModel)

NO_WALLET_MESSAGE = "No harvest wallet found for this project/crop. Add cash first."
INSUFFICIENT_CASH_MESSAGE = "Not enough cash in Harvest Wallet. Please add cash."
NOTHING_TO_PAY_MESSAGE = "All selected pickers are already paid or have zero amount."
WALLET_LIMIT_MESSAGE = "Harvest Wallet cannot hold more cash. Total received would exceed the limit."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_request(
    model: Type[RequestT], payload: Any
) -> Tuple[Optional[RequestT], Optional[LedgerResult]]:
    """
    Validate a raw request body.

    Returns:
        (request, None) when valid, (None, InvalidArgument result) otherwise
    """
    try:
        return model.model_validate(payload), None
    except ValidationError as exc:
        parts = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "request"
            parts.append(f"{field}: {error['msg']}")
        return None, LedgerResult.invalid_argument("; ".join(parts))


def _log_outcome(result: LedgerResult, event: str, **context: Any) -> None:
    if result.ok:
        logger.info(event, extra=context)
    else:
        logger.warning(
            f"{event} rejected",
            extra={**context, "kind": result.error.kind.value, "reason": result.error.message},
        )


def _debit_wallet(wallet: HarvestWallet, amount: int, uid: str, now: datetime) -> Optional[LedgerResult]:
    """Debit the wallet, or return a FailedPrecondition result without touching it."""
    current_balance = wallet.current_balance or 0
    cash_paid_out_total = wallet.cash_paid_out_total or 0

    if current_balance < amount:
        return LedgerResult.failed_precondition(INSUFFICIENT_CASH_MESSAGE)

    wallet.current_balance = current_balance - amount
    wallet.cash_paid_out_total = cash_paid_out_total + amount
    wallet.last_updated_at = now
    wallet.updated_by = uid
    return None


async def _charge_collection(
    session: AsyncSession,
    request: BaseModel,
    wallet_id: str,
    amount: int,
    now: datetime,
) -> CollectionCashUsage:
    """Add ``amount`` to the usage row of (wallet, collection), creating it on first use."""
    usage_id = WalletResolver.resolve_usage_id(wallet_id, request.collection_id)

    def new_usage() -> CollectionCashUsage:
        return CollectionCashUsage(
            id=usage_id,
            company_id=request.company_id,
            project_id=request.project_id,
            crop_type=request.crop_type,
            wallet_id=wallet_id,
            collection_id=request.collection_id,
            total_deducted=0,
            created_at=now,
            last_updated_at=now,
        )

    def deduct(usage: CollectionCashUsage) -> None:
        usage.total_deducted = (usage.total_deducted or 0) + amount
        usage.last_updated_at = now

    return await upsert_record(session, CollectionCashUsage, usage_id, new_usage, deduct)


class HarvestWalletService:

    @staticmethod
    async def add_cash(
        storage: LedgerStorage,
        caller: Optional[CallerContext],
        payload: Any,
    ) -> LedgerResult:
        """
        Credit a harvest wallet with incoming cash ("addHarvestWalletCash").

        Flow:
        1. Authorization gate
        2. Validate request (amount: strict positive integer)
        3. Resolve wallet key
        4. Transaction: reject a credit that would overflow the received total
        5. Create the wallet funded with ``amount`` or add to it
        6. Audit record
        """
        denied = authorize(caller)
        if denied:
            return denied

        request, invalid = parse_request(WalletTopUpRequest, payload)
        if invalid:
            return invalid

        wallet_id = WalletResolver.resolve_wallet_id(
            request.company_id, request.project_id, request.crop_type
        )
        amount = request.amount

        async def work(session: AsyncSession) -> LedgerResult:
            now = _utcnow()

            def new_wallet() -> HarvestWallet:
                return HarvestWallet(
                    id=wallet_id,
                    company_id=request.company_id,
                    project_id=request.project_id,
                    crop_type=request.crop_type,
                    cash_received_total=0,
                    cash_paid_out_total=0,
                    current_balance=0,
                    created_at=now,
                    created_by=caller.uid,
                    last_updated_at=now,
                    updated_by=caller.uid,
                )

            def credit(wallet: HarvestWallet) -> None:
                wallet.cash_received_total = (wallet.cash_received_total or 0) + amount
                wallet.current_balance = (wallet.current_balance or 0) + amount
                wallet.last_updated_at = now
                wallet.updated_by = caller.uid

            existing = await session.get(HarvestWallet, wallet_id)
            if existing is not None and (existing.cash_received_total or 0) + amount > MAX_LEDGER_AMOUNT:
                return LedgerResult.failed_precondition(WALLET_LIMIT_MESSAGE)

            wallet = await upsert_record(session, HarvestWallet, wallet_id, new_wallet, credit)

            log_event(
                session,
                action=AuditAction.WALLET_CASH_ADDED,
                actor_id=caller.uid,
                actor_username=caller.username,
                wallet_id=wallet_id,
                metadata={"amount": amount, "current_balance": wallet.current_balance},
            )
            return LedgerResult.success()

        result = await storage.run_transaction(work)
        _log_outcome(result, "Harvest wallet cash added", wallet_id=wallet_id, amount=amount, actor=caller.uid)
        return result

    @staticmethod
    async def pay_picker(
        storage: LedgerStorage,
        caller: Optional[CallerContext],
        payload: Any,
    ) -> LedgerResult:
        """
        Pay one picker from a harvest wallet ("payPickerFromWallet").

        Flow:
        1. Authorization gate and request validation
        2. Resolve wallet key (explicit walletId wins)
        3. Transaction: wallet must exist and cover the payout
        4. Debit wallet, charge collection usage
        5. Payment log entry and audit record
        """
        denied = authorize(caller)
        if denied:
            return denied

        request, invalid = parse_request(PickerPayoutRequest, payload)
        if invalid:
            return invalid

        wallet_id = WalletResolver.resolve_wallet_id(
            request.company_id, request.project_id, request.crop_type, request.wallet_id
        )
        amount = request.payout_amount

        async def work(session: AsyncSession) -> LedgerResult:
            now = _utcnow()

            wallet = await session.get(HarvestWallet, wallet_id)
            if wallet is None:
                return LedgerResult.failed_precondition(NO_WALLET_MESSAGE)

            rejected = _debit_wallet(wallet, amount, caller.uid, now)
            if rejected:
                return rejected

            await _charge_collection(session, request, wallet_id, amount, now)

            session.add(HarvestWalletPayment(
                company_id=request.company_id,
                project_id=request.project_id,
                crop_type=request.crop_type,
                wallet_id=wallet_id,
                collection_id=request.collection_id,
                picker_id=request.picker_id or None,
                amount=amount,
                created_at=now,
                created_by=caller.uid,
            ))

            log_event(
                session,
                action=AuditAction.WALLET_PICKER_PAID,
                actor_id=caller.uid,
                actor_username=caller.username,
                wallet_id=wallet_id,
                metadata={
                    "collection_id": request.collection_id,
                    "picker_id": request.picker_id,
                    "amount": amount,
                },
            )
            return LedgerResult.success()

        result = await storage.run_transaction(work)
        _log_outcome(
            result, "Harvest wallet picker paid",
            wallet_id=wallet_id, collection_id=request.collection_id, amount=amount, actor=caller.uid,
        )
        return result

    @staticmethod
    async def pay_pickers_batch(
        storage: LedgerStorage,
        caller: Optional[CallerContext],
        payload: Any,
    ) -> LedgerResult:
        """
        Pay every eligible picker in one transaction ("payPickersFromWalletBatch").

        Eligible pickers exist, are not yet paid and are owed more than zero.
        The set marked paid is exactly the set charged.

        Flow:
        1. Authorization gate and request validation
        2. Transaction: wallet must exist
        3. Load pickers, compute eligible set and total
        4. Check balance, debit wallet, charge collection usage
        5. Payment batch record, mark pickers paid, audit record
        """
        denied = authorize(caller)
        if denied:
            return denied

        request, invalid = parse_request(BatchPayoutRequest, payload)
        if invalid:
            return invalid

        wallet_id = WalletResolver.resolve_wallet_id(
            request.company_id, request.project_id, request.crop_type
        )

        async def work(session: AsyncSession) -> LedgerResult:
            now = _utcnow()

            wallet = await session.get(HarvestWallet, wallet_id)
            if wallet is None:
                return LedgerResult.failed_precondition(NO_WALLET_MESSAGE)

            result = await session.execute(
                select(HarvestPicker).where(HarvestPicker.id.in_(request.picker_ids))
            )
            pickers = {picker.id: picker for picker in result.scalars().all()}

            to_pay = []
            for picker_id in request.picker_ids:
                picker = pickers.get(picker_id)
                if picker is None or picker.is_paid:
                    continue
                if (picker.total_pay or 0) > 0:
                    to_pay.append(picker)

            if not to_pay:
                return LedgerResult.failed_precondition(NOTHING_TO_PAY_MESSAGE)

            total_amount = sum(picker.total_pay for picker in to_pay)

            rejected = _debit_wallet(wallet, total_amount, caller.uid, now)
            if rejected:
                return rejected

            await _charge_collection(session, request, wallet_id, total_amount, now)

            batch = HarvestPaymentBatch(
                company_id=request.company_id,
                collection_id=request.collection_id,
                wallet_id=wallet_id,
                picker_ids=[picker.id for picker in to_pay],
                total_amount=total_amount,
                created_at=now,
                created_by=caller.uid,
            )
            session.add(batch)
            await session.flush()  # To get batch.id

            for picker in to_pay:
                picker.is_paid = True
                picker.paid_at = now
                picker.payment_batch_id = batch.id

            log_event(
                session,
                action=AuditAction.WALLET_BATCH_PAID,
                actor_id=caller.uid,
                actor_username=caller.username,
                wallet_id=wallet_id,
                metadata={
                    "collection_id": request.collection_id,
                    "payment_batch_id": batch.id,
                    "picker_ids": batch.picker_ids,
                    "total_amount": total_amount,
                },
            )
            return LedgerResult.success()

        result = await storage.run_transaction(work)
        _log_outcome(
            result, "Harvest wallet batch paid",
            wallet_id=wallet_id, collection_id=request.collection_id,
            pickers=len(request.picker_ids), actor=caller.uid,
        )
        return result

    @staticmethod
    async def get_wallet(db: AsyncSession, wallet_id: str) -> Optional[HarvestWallet]:
        """Read a wallet for balance display."""
        return await db.get(HarvestWallet, wallet_id)

    @staticmethod
    async def get_collection_usage(db: AsyncSession, wallet_id: str, collection_id: str) -> int:
        """Total drawn from a wallet for one collection (0 if never charged)."""
        try:
            usage_id = WalletResolver.resolve_usage_id(wallet_id, collection_id)
        except WalletKeyError:
            return 0
        usage = await db.get(CollectionCashUsage, usage_id)
        return usage.total_deducted if usage else 0
