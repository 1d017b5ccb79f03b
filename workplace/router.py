from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_admin
from .models import WorkplaceType
from .schemas import WorkplaceSchema, WorkplaceCreate, WorkplaceUpdate
from . import service

workplace_router = APIRouter(prefix="/workplaces", tags=["Workplaces"])

# List all workplaces
@workplace_router.get("", response_model=list[WorkplaceSchema])
def list_workplaces(type: Optional[WorkplaceType] = None, db: Session = Depends(get_db), user=Depends(get_current_active_user)):
    return service.get_workplaces(db, type=type)

# Get workplace by id
@workplace_router.get("/{workplace_id}", response_model=WorkplaceSchema)
def workplace_detail(workplace_id: int, db: Session = Depends(get_db), user=Depends(get_current_active_user)):
    obj = service.get_workplace(db, workplace_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Workplace not found")
    return obj

# Create workplace
@workplace_router.post("", response_model=WorkplaceSchema, status_code=status.HTTP_201_CREATED)
def workplace_post(payload: WorkplaceCreate, db: Session = Depends(get_db), _admin=Depends(require_admin)):
    try:
        return service.create_workplace(db, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Manager does not exist")

# Update workplace
@workplace_router.patch("/{workplace_id}", response_model=WorkplaceSchema)
def workplace_patch(workplace_id: int, payload: WorkplaceUpdate, db: Session = Depends(get_db), _admin=Depends(require_admin)):
    if not service.get_workplace(db, workplace_id):
        raise HTTPException(status_code=404, detail="Workplace not found")
    return service.update_workplace(db, workplace_id, payload)

# Delete workplace
@workplace_router.delete("/{workplace_id}")
def workplace_delete(workplace_id: int, db: Session = Depends(get_db), _admin=Depends(require_admin)):
    if not service.get_workplace(db, workplace_id):
        raise HTTPException(status_code=404, detail="Workplace not found")
    try:
        service.delete_workplace(db, workplace_id)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Workplace still has shifts")
    return {"message": "Workplace deleted"}
