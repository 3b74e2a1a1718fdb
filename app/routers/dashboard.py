# app/routers/dashboard.py
"""Yard dashboard: headline counts and the recent activity feed."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.admin import ActivityOut, DashboardStatsOut
from app.services import dashboard_service

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStatsOut, summary="Yard counts and today's revenue")
def get_stats(db: Session = Depends(get_db)):
    return dashboard_service.get_stats(db)


@router.get("/dashboard/activity", response_model=list[ActivityOut], summary="Recent case activity")
def get_recent_activity(limit: int = Query(10, ge=1, le=50), db: Session = Depends(get_db)):
    return dashboard_service.recent_activity(db, limit=limit)
