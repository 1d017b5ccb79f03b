from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_admin
from user.models import UserRole
from .schemas import ShiftSchema, ShiftCreatePayload, ShiftCreate, ShiftUpdate
from shift import service

shift_router = APIRouter(prefix="/shifts", tags=["Shifts"])

@shift_router.get("", response_model=list[ShiftSchema])
def list_shifts(
    worker_id: Optional[int] = Query(None, description="Filter by assigned worker"),
    workplace_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    unassigned: bool = False,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    # workers only see their own shifts
    if user.role != UserRole.admin:
        worker_id, unassigned = user.id, False
    return service.get_shifts(
        db,
        worker_id=worker_id,
        workplace_id=workplace_id,
        start=start,
        end=end,
        unassigned=unassigned,
    )

@shift_router.get("/conflicts", response_model=list[ShiftSchema])
def list_conflicts(
    worker_id: int,
    start_at: datetime,
    end_at: datetime,
    exclude_shift_id: Optional[int] = None,
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    return service.find_conflicts(db, worker_id, start_at, end_at, exclude_shift_id)

@shift_router.get("/{shift_id}", response_model=ShiftSchema)
def get_shift(shift_id: int, db: Session = Depends(get_db), user = Depends(get_current_active_user)):
    obj = service.get_shift(db, shift_id)
    if not obj or (user.role != UserRole.admin and obj.worker_id != user.id):
        raise HTTPException(status_code=404, detail="Shift not found")
    return obj

@shift_router.post("", response_model=ShiftSchema, status_code=status.HTTP_201_CREATED)
def create_shift(payload: ShiftCreatePayload, db: Session = Depends(get_db), _admin = Depends(require_admin)):
    internal = ShiftCreate(**payload.model_dump())
    return service.create_shift(db, internal)

@shift_router.patch("/{shift_id}", response_model=ShiftSchema)
def patch_shift(shift_id: int, payload: ShiftUpdate, db: Session = Depends(get_db), _admin = Depends(require_admin)):
    return service.update_shift(db, shift_id, payload)

@shift_router.delete("/{shift_id}")
def delete_shift(shift_id: int, db: Session = Depends(get_db), _admin = Depends(require_admin)):
    service.delete_shift(db, shift_id)
    return {"message": "Shift deleted"}
