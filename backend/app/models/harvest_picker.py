"""
Harvest Picker database model.

Pickers are owned by the worker roster; the ledger only reads total_pay /
is_paid and flips the paid-state fields during a batch payout.
"""

from sqlalchemy import Column, Integer, BigInteger, Float, String, Boolean, ForeignKey, DateTime
from backend.app.db.session import Base


class HarvestPicker(Base):
    """
    Harvest Picker model.

    A person owed payment for harvested quantity in one collection.
    """
    __tablename__ = "harvest_pickers"

    id = Column(String(100), primary_key=True)

    company_id = Column(String(100), nullable=False, index=True)
    collection_id = Column(String(100), nullable=False, index=True)
    picker_number = Column(Integer, nullable=True)
    picker_name = Column(String(255), nullable=True)

    # Amount owed (minor currency units)
    total_kg = Column(Float, nullable=False, default=0.0)
    total_pay = Column(BigInteger, nullable=False, default=0)

    # Paid state (written by batch payouts)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_batch_id = Column(Integer, ForeignKey('harvest_payment_batches.id'), nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<HarvestPicker(id='{self.id}', total_pay={self.total_pay}, is_paid={self.is_paid})>"
