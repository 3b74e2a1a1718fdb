"""
Fee schedule configuration, versioned by effective date.
The current row for a fee type has effective_to = NULL.
"""

from datetime import datetime

from sqlalchemy import Column, String, DateTime, Numeric, JSON
from app.database import Base
from app.models.vehicle_case import new_uuid


class FeeScheduleConfig(Base):
    __tablename__ = "fee_schedule_configs"

    id = Column(String(36), primary_key=True, default=new_uuid)
    fee_type = Column(String(30), nullable=False, index=True)
    base_amount = Column(Numeric(10, 2), nullable=False)
    vehicle_class_amounts = Column(JSON)   # {"LARGE": "225.00", ...}
    effective_from = Column(DateTime, nullable=False, default=datetime.utcnow)
    effective_to = Column(DateTime, index=True)
    created_by_id = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<FeeScheduleConfig {self.fee_type} base={self.base_amount} to={self.effective_to}>"
