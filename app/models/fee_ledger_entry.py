"""
Fee ledger table: charges (positive amount) and payments (negative amount)
per vehicle case. Entries are voided, never deleted; voided rows are
excluded from every balance computation.
"""

from datetime import datetime

from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey
from app.database import Base
from app.models.vehicle_case import new_uuid


class FeeLedgerEntry(Base):
    __tablename__ = "fee_ledger_entries"

    id = Column(String(36), primary_key=True, default=new_uuid)
    vehicle_case_id = Column(String(36), ForeignKey("vehicle_cases.id"), nullable=False, index=True)
    fee_type = Column(String(30), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    accrual_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime)
    paid_at = Column(DateTime)
    payment_method = Column(String(50))   # PAYMENT entries only
    voided_at = Column(DateTime, index=True)
    void_reason = Column(String(255))
    created_by_id = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    @property
    def is_voided(self) -> bool:
        return self.voided_at is not None

    def __repr__(self):
        return f"<FeeLedgerEntry {self.fee_type} {self.amount} voided={self.is_voided}>"
