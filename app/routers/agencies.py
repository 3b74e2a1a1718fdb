from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.agency import Agency
from app.schemas.admin import AgencyOut

router = APIRouter()


@router.get("/agencies", response_model=list[AgencyOut], summary="Active requesting agencies")
def list_agencies(db: Session = Depends(get_db)):
    return db.query(Agency).filter(Agency.active == True).order_by(Agency.name).all()  # noqa: E712
