"""
Per-year case number counter. One row per two-digit year.
Only ever touched through the atomic upsert in case_number_service.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime
from app.database import Base


class CaseNumberSequence(Base):
    __tablename__ = "case_number_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)  # 0-99
    last_number = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<CaseNumberSequence {self.year:02d} last={self.last_number}>"
