# Agencies, fee schedule, audit trail and dashboard payloads
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Any

from app.models.enums import AgencyType, FeeType, VehicleClass


class AgencyOut(BaseModel):
    id: str
    name: str
    agency_type: AgencyType
    oris_code: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]

    class Config:
        from_attributes = True


class FeeScheduleItemOut(BaseModel):
    fee_type: FeeType
    label: str
    description: str
    base_amount: Decimal
    vehicle_class_amounts: dict[VehicleClass, Decimal] = {}


class FeeScheduleUpdate(BaseModel):
    base_amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    vehicle_class_amounts: dict[VehicleClass, Decimal] = {}


class AuditEventOut(BaseModel):
    id: str
    event_type: str
    entity_type: str
    entity_id: str
    actor_id: str
    actor_type: str
    changes: Optional[dict[str, Any]]
    details: Optional[dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True


class DashboardStatsOut(BaseModel):
    total_stored: int
    ready_to_release: int
    on_hold: int
    pending_intake: int
    auction_eligible: int
    today_revenue: Decimal


class ActivityOut(BaseModel):
    id: str
    event_type: str
    case_number: Optional[str]
    vehicle_description: Optional[str]
    created_at: datetime
    details: Optional[dict[str, Any]]
