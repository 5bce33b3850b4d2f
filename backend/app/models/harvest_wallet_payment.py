"""
Harvest Wallet Payment database model.

Immutable log of single picker payouts.
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class HarvestWalletPayment(Base):
    """
    Harvest Wallet Payment model.

    Append-only record of one payout from a wallet.
    NO updates or deletions allowed.
    """
    __tablename__ = "harvest_wallet_payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Linkage
    company_id = Column(String(100), nullable=False, index=True)
    project_id = Column(String(100), nullable=False)
    crop_type = Column(String(100), nullable=False)
    wallet_id = Column(String(255), nullable=False, index=True)
    collection_id = Column(String(100), nullable=False, index=True)
    picker_id = Column(String(100), nullable=True)  # Not validated against the roster

    # Financials
    amount = Column(BigInteger, nullable=False)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(128), nullable=False)

    def __repr__(self):
        return f"<HarvestWalletPayment(id={self.id}, wallet='{self.wallet_id}', amount={self.amount})>"
