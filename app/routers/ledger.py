"""Fee ledger entry corrections."""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_actor_id
from app.schemas.fee_ledger import FeeLedgerEntryOut, VoidRequest
from app.services import fee_ledger_service

router = APIRouter()


@router.post("/ledger/{entry_id}/void", response_model=FeeLedgerEntryOut, summary="Void a ledger entry")
async def void_entry(entry_id: UUID, body: Optional[VoidRequest] = Body(default=None),
                     db: Session = Depends(get_db), actor_id: str = Depends(get_actor_id)):
    """The entry stays in the ledger listing but no longer counts toward the balance."""
    reason = body.reason if body else None
    return await fee_ledger_service.void_entry(db, str(entry_id), actor_id, reason=reason)
