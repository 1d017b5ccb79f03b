from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from user.models import UserRole

from .schemas import ReportSchema, ReportGeneratePayload, WorkerStats
from . import service

report_router = APIRouter(prefix="/reports", tags=["Reports"])
stats_router = APIRouter(prefix="/stats", tags=["Reports"])


def _target_user(user, user_id: Optional[int]) -> int:
    target = user_id if user_id is not None else user.id
    if user.role != UserRole.admin and target != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return target

# List reports of a user, newest period first
@report_router.get("", response_model=list[ReportSchema])
def list_reports(
    user_id: Optional[int] = Query(None, description="Defaults to the caller"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    return service.list_reports(db, _target_user(user, user_id))

@report_router.get("/{report_id}", response_model=ReportSchema)
def get_report(report_id: int, db: Session = Depends(get_db), user = Depends(get_current_active_user)):
    obj = service.get_report(db, report_id)
    if not obj or (user.role != UserRole.admin and obj.user_id != user.id):
        raise HTTPException(status_code=404, detail="Report not found")
    return obj

# Generate a new snapshot for a month
@report_router.post("/generate", response_model=ReportSchema, status_code=status.HTTP_201_CREATED)
def generate_report(
    payload: ReportGeneratePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    target = _target_user(user, payload.user_id)
    return service.generate(db, target, payload.month, payload.year)

@stats_router.get("", response_model=WorkerStats)
def my_stats(db: Session = Depends(get_db), user = Depends(get_current_active_user)):
    return service.get_worker_stats(db, user.id)
