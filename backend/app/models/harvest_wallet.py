"""
Harvest Wallet database model.

The single cash pool for one (company, project, crop) harvest season.
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base


class HarvestWallet(Base):
    """
    Harvest Wallet model.

    Running totals in minor currency units. Mutated only inside ledger
    transactions; never deleted.
    Invariant: current_balance = cash_received_total - cash_paid_out_total >= 0.
    """
    __tablename__ = "harvest_wallets"

    # Derived "{companyId}_{projectId}_{cropType}" or an explicit id
    id = Column(String(255), primary_key=True)

    # Identity
    company_id = Column(String(100), nullable=False, index=True)
    project_id = Column(String(100), nullable=False, index=True)
    crop_type = Column(String(100), nullable=False)

    # Financials
    cash_received_total = Column(BigInteger, nullable=False, default=0)
    cash_paid_out_total = Column(BigInteger, nullable=False, default=0)
    current_balance = Column(BigInteger, nullable=False, default=0)

    # Optimistic concurrency counter
    version = Column(Integer, nullable=False)

    # Audit
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(128), nullable=True)
    last_updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_by = Column(String(128), nullable=True)

    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_harvest_wallets_balance_non_negative"),
        CheckConstraint(
            "current_balance = cash_received_total - cash_paid_out_total",
            name="ck_harvest_wallets_balance_conserved",
        ),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<HarvestWallet(id='{self.id}', balance={self.current_balance})>"
