from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.models.enums import CaseStatus, FeeType


class FeeLedgerEntryOut(BaseModel):
    id: str
    vehicle_case_id: str
    fee_type: FeeType
    description: str
    amount: Decimal
    accrual_date: datetime
    due_date: Optional[datetime]
    paid_at: Optional[datetime]
    payment_method: Optional[str]
    voided_at: Optional[datetime]
    void_reason: Optional[str]
    created_by_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerSummaryOut(BaseModel):
    total_charges: Decimal
    total_payments: Decimal
    balance: Decimal


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: str = Field(min_length=1, max_length=50)   # CASH | CARD | CHECK ...
    description: Optional[str] = None


class PaymentOut(BaseModel):
    entry: FeeLedgerEntryOut
    new_balance: Decimal
    status: CaseStatus


class ChargeCreate(BaseModel):
    fee_type: FeeType
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    description: str = Field(min_length=1, max_length=255)
    accrual_date: Optional[datetime] = None


class VoidRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)
