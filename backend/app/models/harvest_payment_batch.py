"""
Harvest Payment Batch database model.

Immutable record of one batch payout covering several pickers.
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base


class HarvestPaymentBatch(Base):
    """
    Harvest Payment Batch model.

    Lists exactly the pickers that were charged by the batch.
    NO updates or deletions allowed.
    """
    __tablename__ = "harvest_payment_batches"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    company_id = Column(String(100), nullable=False, index=True)
    collection_id = Column(String(100), nullable=False, index=True)
    wallet_id = Column(String(255), nullable=False, index=True)

    # JSON array of picker IDs paid by this batch
    picker_ids = Column(JSON, nullable=False)
    total_amount = Column(BigInteger, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(128), nullable=False)

    def __repr__(self):
        return f"<HarvestPaymentBatch(id={self.id}, pickers={len(self.picker_ids or [])}, amount={self.total_amount})>"
