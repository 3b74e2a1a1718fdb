"""Fee schedule amounts used for intake charges, per fee type and vehicle class."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_actor_id
from app.models.enums import FeeType
from app.schemas.admin import FeeScheduleItemOut, FeeScheduleUpdate
from app.services import fee_schedule_service

router = APIRouter()


@router.get("/fee-schedule", response_model=list[FeeScheduleItemOut], summary="Effective fee schedule")
def get_fee_schedule(db: Session = Depends(get_db)):
    """Configured amounts, or the built-in defaults for fee types never configured."""
    return fee_schedule_service.list_fee_schedule(db)


@router.put("/fee-schedule/{fee_type}", summary="Update a fee type's amounts")
async def update_fee_schedule(fee_type: FeeType, body: FeeScheduleUpdate, db: Session = Depends(get_db),
                              actor_id: str = Depends(get_actor_id)):
    config = await fee_schedule_service.update_fee_schedule(
        db, fee_type, body.base_amount, body.vehicle_class_amounts, actor_id,
    )
    return {"fee_type": fee_type, "base_amount": config.base_amount,
            "effective_from": config.effective_from, "status": "updated"}
