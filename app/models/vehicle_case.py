"""
Vehicle cases table. One row per towed vehicle, from tow-in to disposition.
Rows are never deleted; terminal statuses keep the record for audit.
Status transitions live in case_lifecycle_service.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey
from app.database import Base
from app.models.enums import CaseStatus, VehicleType, VehicleClass


def new_uuid() -> str:
    return str(uuid.uuid4())


class VehicleCase(Base):
    __tablename__ = "vehicle_cases"

    id = Column(String(36), primary_key=True, default=new_uuid)
    case_number = Column(String(8), unique=True, nullable=False, index=True)  # YY-NNNNN
    status = Column(String(30), nullable=False, index=True,
                    default=CaseStatus.PENDING_INTAKE.value)

    # Vehicle descriptors (informational)
    vin = Column(String(17), index=True)
    plate_number = Column(String(20), index=True)
    plate_state = Column(String(2))
    year = Column(Integer)
    make = Column(String(100))
    model = Column(String(100))
    color = Column(String(50))
    vehicle_type = Column(String(30), nullable=False, default=VehicleType.SEDAN.value)
    vehicle_class = Column(String(30), nullable=False, default=VehicleClass.STANDARD.value)

    # Tow
    tow_date = Column(DateTime, nullable=False)
    tow_reason = Column(String(30), nullable=False)
    tow_location = Column(String(255), nullable=False)
    towing_agency_id = Column(String(36), ForeignKey("agencies.id"))

    # Owner
    owner_name = Column(String(200))
    owner_address = Column(String(255))
    owner_phone = Column(String(30))

    # Police hold
    police_hold = Column(Boolean, nullable=False, default=False)
    police_case_number = Column(String(50))
    hold_expires_at = Column(DateTime)

    # Intake
    yard_location = Column(String(50))
    intake_date = Column(DateTime)
    intake_notes = Column(Text)

    # Release
    release_eligible_at = Column(DateTime)
    released_at = Column(DateTime)
    released_to = Column(String(200))

    created_by_id = Column(String(100), nullable=False)
    updated_by_id = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Optimistic lock: UPDATE ... WHERE version = :old, StaleDataError on mismatch
    version = Column(Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version}

    @property
    def status_enum(self) -> CaseStatus:
        return CaseStatus(self.status)

    def __repr__(self):
        return f"<VehicleCase {self.case_number} status={self.status} hold={self.police_hold}>"
