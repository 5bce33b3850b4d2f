"""
Collection Cash Usage database model.

Tracks how much of a wallet's cash has been consumed by one harvest collection.
"""

from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base


class CollectionCashUsage(Base):
    """
    Collection Cash Usage model.

    One row per (wallet, collection). total_deducted only ever grows and
    equals the sum of payouts charged against the pair.
    """
    __tablename__ = "collection_cash_usage"

    # "{walletId}_{collectionId}"
    id = Column(String(255), primary_key=True)

    # Identity (mirrored from the wallet request)
    company_id = Column(String(100), nullable=False, index=True)
    project_id = Column(String(100), nullable=False)
    crop_type = Column(String(100), nullable=False)
    wallet_id = Column(String(255), ForeignKey('harvest_wallets.id'), nullable=False, index=True)
    collection_id = Column(String(100), nullable=False, index=True)

    total_deducted = Column(BigInteger, nullable=False, default=0)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("total_deducted >= 0", name="ck_collection_cash_usage_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<CollectionCashUsage(id='{self.id}', total_deducted={self.total_deducted})>"
