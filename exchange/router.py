from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from user.models import UserRole

from .models import ExchangeStatus
from .schemas import (
    ExchangeApprovePayload,
    ExchangeRejectPayload,
    ExchangeRequestCreatePayload,
    ExchangeRequestSchema,
)
from . import service

exchange_router = APIRouter(prefix="/exchange-requests", tags=["Exchange requests"])

# List: admins see everything (optionally for one user), workers their own
@exchange_router.get("", response_model=list[ExchangeRequestSchema])
def list_exchange_requests(
    user_id: Optional[int] = Query(None, description="Requests raised by or addressed to this user"),
    status: Optional[ExchangeStatus] = None,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    if user.role != UserRole.admin:
        user_id = user.id
    return service.get_exchange_requests(db, user_id=user_id, status=status)

# Pending requests the caller (or, for admins, anyone) can act on
@exchange_router.get("/pending", response_model=list[ExchangeRequestSchema])
def list_pending_requests(
    for_requestee: Optional[int] = None,
    for_workplace: Optional[int] = None,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    if user.role != UserRole.admin:
        for_requestee = user.id
    return service.list_pending(db, for_requestee=for_requestee, for_workplace=for_workplace)

@exchange_router.get("/{request_id}", response_model=ExchangeRequestSchema)
def get_exchange_request(
    request_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    obj = service.get_exchange_request(db, request_id)
    visible = obj is not None and (
        user.role == UserRole.admin
        or user.id in (obj.requester_id, obj.requestee_id)
        or obj.requestee_id is None
    )
    if not visible:
        raise HTTPException(status_code=404, detail="Exchange request not found")
    return obj

@exchange_router.post("", response_model=ExchangeRequestSchema, status_code=201)
def propose_exchange(
    payload: ExchangeRequestCreatePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    return service.propose(
        db,
        requester_id=user.id,
        request_shift_id=payload.request_shift_id,
        offered_shift_id=payload.offered_shift_id,
        requestee_id=payload.requestee_id,
        notes=payload.notes,
    )

@exchange_router.post("/{request_id}/approve", response_model=ExchangeRequestSchema)
def approve_exchange(
    request_id: int,
    payload: Optional[ExchangeApprovePayload] = None,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    taker_id = payload.taker_id if payload else None
    return service.approve(db, request_id, acting_user_id=user.id, taker_id=taker_id)

@exchange_router.post("/{request_id}/reject", response_model=ExchangeRequestSchema)
def reject_exchange(
    request_id: int,
    payload: Optional[ExchangeRejectPayload] = None,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    reason = payload.reason if payload else None
    return service.reject(db, request_id, acting_user_id=user.id, reason=reason)
