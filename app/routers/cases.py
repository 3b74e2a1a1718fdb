"""
Vehicle case endpoints: intake, search, payments, release and status override.
All business rules live in case_lifecycle_service / fee_ledger_service;
domain errors propagate to the handlers registered in main.py.
"""

from dataclasses import asdict
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.dependencies import get_actor_id
from app.exceptions import NotFoundError
from app.models.enums import CaseStatus
from app.schemas.admin import AuditEventOut
from app.schemas.fee_ledger import ChargeCreate, FeeLedgerEntryOut, LedgerSummaryOut, PaymentCreate, PaymentOut
from app.schemas.vehicle_case import (
    CaseCreate, CaseDetailOut, CaseOut, CaseSearchOut, CaseSummaryOut,
    IntakeComplete, ReleaseOut, ReleaseRequest, StatusUpdate,
)
from app.services import case_lifecycle_service, fee_ledger_service
from app.services.audit_service import list_audit_events
from app.services.vehicle_service import get_case, lookup_case_by_number

router = APIRouter()


def _detail_out(detail: dict) -> CaseDetailOut:
    case_fields = CaseOut.model_validate(detail["case"]).model_dump()
    return CaseDetailOut(
        **case_fields,
        fee_ledger_summary=LedgerSummaryOut(**asdict(detail["summary"])),
        fee_ledger_entries=[FeeLedgerEntryOut.model_validate(e) for e in detail["entries"]],
    )


@router.post("/cases", response_model=CaseOut, status_code=status.HTTP_201_CREATED,
             summary="Create a case for a newly towed vehicle")
async def create_case(body: CaseCreate, db: Session = Depends(get_db),
                      actor_id: str = Depends(get_actor_id)):
    """Issues the next YY-NNNNN case number; the case starts in PENDING_INTAKE."""
    return await case_lifecycle_service.create_case(db, body, actor_id)


@router.get("/cases", response_model=CaseSearchOut, summary="Search cases")
def search_cases(
    query: Optional[str] = None,
    status: Optional[CaseStatus] = None,
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT, ge=1, le=settings.SEARCH_MAX_LIMIT),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Paginated, newest first. Each row carries its current balance."""
    rows, total, has_more = case_lifecycle_service.search_cases(db, query, status, limit, offset)
    cases = [
        CaseSummaryOut.model_validate(c).model_copy(update={"balance": balance})
        for c, balance in rows
    ]
    return CaseSearchOut(cases=cases, total=total, has_more=has_more)


@router.get("/cases/by-number/{case_number}", response_model=CaseDetailOut,
            summary="Look up a case by case number")
def get_case_by_number(case_number: str, db: Session = Depends(get_db)):
    vehicle_case = lookup_case_by_number(db, case_number)
    if not vehicle_case:
        raise NotFoundError(f"Case {case_number} not found")
    return _detail_out(case_lifecycle_service.get_case_detail(db, vehicle_case.id))


@router.get("/cases/{case_id}", response_model=CaseDetailOut, summary="Case detail with ledger summary")
def get_case_detail(case_id: UUID, db: Session = Depends(get_db)):
    return _detail_out(case_lifecycle_service.get_case_detail(db, str(case_id)))


@router.post("/cases/{case_id}/intake", response_model=CaseOut, summary="Complete intake")
async def complete_intake(case_id: UUID, body: IntakeComplete, db: Session = Depends(get_db),
                          actor_id: str = Depends(get_actor_id)):
    """Assigns the yard location, posts tow + admin fees, moves to STORED or HOLD."""
    return await case_lifecycle_service.complete_intake(
        db, str(case_id), body.yard_location, actor_id, notes=body.notes,
    )


@router.post("/cases/{case_id}/payments", response_model=PaymentOut,
             status_code=status.HTTP_201_CREATED, summary="Record a payment")
async def record_payment(case_id: UUID, body: PaymentCreate, db: Session = Depends(get_db),
                         actor_id: str = Depends(get_actor_id)):
    entry, balance, vehicle_case = await fee_ledger_service.add_payment(
        db, str(case_id), body.amount, body.payment_method, actor_id, description=body.description,
    )
    return PaymentOut(entry=FeeLedgerEntryOut.model_validate(entry), new_balance=balance,
                      status=vehicle_case.status)


@router.post("/cases/{case_id}/charges", response_model=FeeLedgerEntryOut,
             status_code=status.HTTP_201_CREATED, summary="Add a charge")
async def add_charge(case_id: UUID, body: ChargeCreate, db: Session = Depends(get_db),
                     actor_id: str = Depends(get_actor_id)):
    return await fee_ledger_service.add_charge(
        db, str(case_id), body.fee_type, body.amount, body.description, actor_id,
        accrual_date=body.accrual_date,
    )


@router.post("/cases/{case_id}/release", response_model=ReleaseOut, summary="Release a vehicle")
async def release_case(case_id: UUID, body: ReleaseRequest, db: Session = Depends(get_db),
                       actor_id: str = Depends(get_actor_id)):
    """Rejected under police hold. An unpaid balance is reported, not enforced."""
    vehicle_case, balance = await case_lifecycle_service.release_case(
        db, str(case_id), body.released_to, actor_id,
    )
    return ReleaseOut(case=CaseOut.model_validate(vehicle_case), outstanding_balance=balance)


@router.put("/cases/{case_id}/status", response_model=CaseOut, summary="Admin status override")
async def update_status(case_id: UUID, body: StatusUpdate, db: Session = Depends(get_db),
                        actor_id: str = Depends(get_actor_id)):
    return await case_lifecycle_service.update_status(db, str(case_id), body.status, actor_id)


@router.post("/cases/{case_id}/lift-hold", response_model=CaseOut, summary="Lift police hold")
async def lift_police_hold(case_id: UUID, db: Session = Depends(get_db),
                           actor_id: str = Depends(get_actor_id)):
    return await case_lifecycle_service.lift_police_hold(db, str(case_id), actor_id)


@router.get("/cases/{case_id}/ledger", response_model=list[FeeLedgerEntryOut],
            summary="Full fee ledger, voided entries included")
def get_ledger(case_id: UUID, include_voided: bool = True, db: Session = Depends(get_db)):
    vehicle_case = get_case(db, str(case_id))
    return fee_ledger_service.list_entries(db, vehicle_case.id, include_voided=include_voided)


@router.get("/cases/{case_id}/audit", response_model=list[AuditEventOut], summary="Audit trail")
def get_audit_trail(case_id: UUID, limit: int = Query(100, ge=1, le=500), db: Session = Depends(get_db)):
    vehicle_case = get_case(db, str(case_id))
    return list_audit_events(db, vehicle_case.id, limit=limit)
