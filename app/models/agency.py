"""
Requesting agencies (police departments, municipalities, private lots).
Referenced by vehicle_cases.towing_agency_id.
"""

from sqlalchemy import Column, String, Boolean
from app.database import Base
from app.models.vehicle_case import new_uuid


class Agency(Base):
    __tablename__ = "agencies"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), nullable=False)
    agency_type = Column(String(30), nullable=False)
    oris_code = Column(String(20), unique=True)
    contact_email = Column(String(200))
    contact_phone = Column(String(30))
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Agency {self.name} type={self.agency_type} active={self.active}>"
