from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from app.models.enums import CaseStatus, TowReason, VehicleType, VehicleClass
from app.schemas.fee_ledger import FeeLedgerEntryOut, LedgerSummaryOut


class CaseCreate(BaseModel):
    # Tow request
    towing_agency_id: Optional[UUID] = None
    tow_date: datetime
    tow_reason: TowReason
    tow_location: str = Field(min_length=1)
    police_hold: bool = False
    police_case_number: Optional[str] = None
    hold_expires_at: Optional[datetime] = None

    # Vehicle details
    vin: Optional[str] = Field(None, min_length=17, max_length=17)
    plate_number: Optional[str] = None
    plate_state: Optional[str] = Field(None, min_length=2, max_length=2)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.SEDAN
    vehicle_class: VehicleClass = VehicleClass.STANDARD

    # Owner
    owner_name: Optional[str] = None
    owner_address: Optional[str] = None
    owner_phone: Optional[str] = None

    @field_validator(
        "vin", "plate_number", "plate_state", "make", "model", "color",
        "police_case_number", "owner_name", "owner_address", "owner_phone",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        """Intake forms submit empty strings for untouched optional fields."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CaseOut(BaseModel):
    id: str
    case_number: str
    status: CaseStatus
    vin: Optional[str]
    plate_number: Optional[str]
    plate_state: Optional[str]
    year: Optional[int]
    make: Optional[str]
    model: Optional[str]
    color: Optional[str]
    vehicle_type: VehicleType
    vehicle_class: VehicleClass
    tow_date: datetime
    tow_reason: TowReason
    tow_location: str
    towing_agency_id: Optional[str]
    owner_name: Optional[str]
    owner_address: Optional[str]
    owner_phone: Optional[str]
    police_hold: bool
    police_case_number: Optional[str]
    hold_expires_at: Optional[datetime]
    yard_location: Optional[str]
    intake_date: Optional[datetime]
    intake_notes: Optional[str]
    release_eligible_at: Optional[datetime]
    released_at: Optional[datetime]
    released_to: Optional[str]
    created_by_id: str
    updated_by_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CaseDetailOut(CaseOut):
    fee_ledger_summary: LedgerSummaryOut
    fee_ledger_entries: list[FeeLedgerEntryOut]


class CaseSummaryOut(BaseModel):
    """Row in the case search table."""
    id: str
    case_number: str
    status: CaseStatus
    vin: Optional[str]
    plate_number: Optional[str]
    plate_state: Optional[str]
    year: Optional[int]
    make: Optional[str]
    model: Optional[str]
    color: Optional[str]
    yard_location: Optional[str]
    police_hold: bool
    tow_date: datetime
    created_at: datetime
    balance: Decimal = Decimal("0.00")

    class Config:
        from_attributes = True


class CaseSearchOut(BaseModel):
    cases: list[CaseSummaryOut]
    total: int
    has_more: bool


class IntakeComplete(BaseModel):
    yard_location: str = Field(min_length=1, max_length=50)
    notes: Optional[str] = None


class ReleaseRequest(BaseModel):
    released_to: str = Field(min_length=1, max_length=200)


class ReleaseOut(BaseModel):
    case: CaseOut
    outstanding_balance: Decimal


class StatusUpdate(BaseModel):
    status: CaseStatus
