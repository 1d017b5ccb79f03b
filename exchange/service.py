# exchange/service.py
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, or_, and_, exists
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core.config_loader import settings
from core.errors import (
    InvalidExchange,
    InvalidTransition,
    NotFound,
    NotOwner,
    NotPermitted,
    SchedulingError,
    ShiftInPast,
)
from core.intervals import aware, to_utc
from shift import service as shift_service
from shift.models import Shift
from user.models import User
from .models import ExchangeRequest, ExchangeStatus
from .outcomes import apply_outcome, gaining_workers, plan_outcome

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def get_exchange_request(db: Session, request_id: int) -> ExchangeRequest | None:
    return db.get(ExchangeRequest, request_id)


def get_exchange_request_or_404(db: Session, request_id: int) -> ExchangeRequest:
    req = db.get(ExchangeRequest, request_id)
    if not req:
        raise NotFound("Exchange request not found")
    return req


def get_exchange_requests(
    db: Session,
    *,
    user_id: Optional[int] = None,
    status: Optional[ExchangeStatus] = None,
) -> List[ExchangeRequest]:
    """Requests, optionally limited to those the user raised or is addressed by."""
    stmt = select(ExchangeRequest)
    if user_id is not None:
        stmt = stmt.where(
            or_(ExchangeRequest.requester_id == user_id, ExchangeRequest.requestee_id == user_id)
        )
    if status is not None:
        stmt = stmt.where(ExchangeRequest.status == status)
    stmt = stmt.order_by(ExchangeRequest.id.desc())
    return list(db.scalars(stmt))


def list_pending(
    db: Session,
    *,
    for_requestee: Optional[int] = None,
    for_workplace: Optional[int] = None,
) -> List[ExchangeRequest]:
    """
    Pending requests, oldest first.

    ``for_requestee`` keeps requests addressed to that worker plus open requests
    raised by someone else; ``for_workplace`` keeps requests whose request shift
    belongs to that workplace.
    """
    stmt = select(ExchangeRequest).where(ExchangeRequest.status == ExchangeStatus.pending)
    if for_requestee is not None:
        stmt = stmt.where(
            or_(
                ExchangeRequest.requestee_id == for_requestee,
                and_(
                    ExchangeRequest.requestee_id.is_(None),
                    ExchangeRequest.requester_id != for_requestee,
                ),
            )
        )
    if for_workplace is not None:
        stmt = stmt.join(Shift, Shift.id == ExchangeRequest.request_shift_id).where(
            Shift.workplace_id == for_workplace
        )
    stmt = stmt.order_by(ExchangeRequest.id.asc())
    return list(db.scalars(stmt))


def pending_for_shift(db: Session, shift_id: int) -> List[ExchangeRequest]:
    """Pending requests involving the shift, locked and reloaded for the rest of the transaction."""
    stmt = (
        select(ExchangeRequest)
        .where(
            ExchangeRequest.status == ExchangeStatus.pending,
            or_(ExchangeRequest.request_shift_id == shift_id, ExchangeRequest.offered_shift_id == shift_id),
        )
        .order_by(ExchangeRequest.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return list(db.scalars(stmt))


def _resolve(
    req: ExchangeRequest,
    status: ExchangeStatus,
    *,
    acting_user_id: Optional[int],
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> None:
    if req.status != ExchangeStatus.pending:
        raise InvalidTransition(f"exchange request {req.id} is already {req.status.value}")
    req.status = status
    req.resolved_by = acting_user_id
    req.resolved_at = to_utc(now or _utcnow())
    req.resolution_note = note


def cancel_pending_for_shift(
    db: Session,
    shift_id: int,
    *,
    reason: str,
    acting_user_id: Optional[int] = None,
) -> List[ExchangeRequest]:
    """Reject every pending request that involves the shift. Does not commit."""
    pending = pending_for_shift(db, shift_id)
    for req in pending:
        _resolve(req, ExchangeStatus.rejected, acting_user_id=acting_user_id, note=reason)
        logger.info("exchange request %s rejected: %s", req.id, reason)
    db.flush()
    return pending


def propose(
    db: Session,
    requester_id: int,
    request_shift_id: int,
    offered_shift_id: Optional[int] = None,
    requestee_id: Optional[int] = None,
    notes: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> ExchangeRequest:
    now = to_utc(now or _utcnow())
    try:
        _get_user_or_404(db, requester_id)
        # a delete or reassignment of either shift waits until this proposal commits
        locked = shift_service.lock_shifts(db, [request_shift_id, offered_shift_id])

        request_shift = locked.get(request_shift_id)
        if request_shift is None:
            raise NotFound("Shift not found")
        if request_shift.worker_id != requester_id:
            raise NotOwner(f"shift {request_shift_id} does not belong to user {requester_id}")
        if aware(request_shift.start_at) <= now:
            raise ShiftInPast()

        if requestee_id is not None:
            if requestee_id == requester_id:
                raise InvalidExchange("cannot address an exchange request to yourself")
            _get_user_or_404(db, requestee_id)

        if offered_shift_id is not None:
            if offered_shift_id == request_shift_id:
                raise InvalidExchange("offered shift must differ from the requested shift")
            offered = locked.get(offered_shift_id)
            if offered is None:
                raise NotFound("Shift not found")
            if offered.worker_id is None or offered.worker_id == requester_id:
                raise NotOwner(f"offered shift {offered_shift_id} must belong to another worker")
            if requestee_id is not None and offered.worker_id != requestee_id:
                raise NotOwner(f"offered shift {offered_shift_id} does not belong to user {requestee_id}")
            if aware(offered.start_at) <= now:
                raise ShiftInPast("cannot exchange for a shift that has already started")
            requestee_id = offered.worker_id

        row = ExchangeRequest(
            requester_id=requester_id,
            requestee_id=requestee_id,
            request_shift_id=request_shift_id,
            offered_shift_id=offered_shift_id,
            status=ExchangeStatus.pending,
            notes=notes,
        )
        db.add(row)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    db.refresh(row)
    logger.info(
        "exchange request %s proposed by %s for shift %s (offered %s, requestee %s)",
        row.id, requester_id, request_shift_id, offered_shift_id, requestee_id,
    )
    return row


def _check_may_approve(db: Session, req: ExchangeRequest, actor: User) -> None:
    if actor.is_admin:
        return
    if actor.id == req.requester_id:
        raise NotPermitted("requester cannot approve their own exchange request")
    if req.requestee_id is not None:
        if actor.id != req.requestee_id:
            raise NotPermitted()
        return
    if settings.OPEN_EXCHANGE_APPROVERS == "same_workplace":
        workplace_id = select(Shift.workplace_id).where(Shift.id == req.request_shift_id).scalar_subquery()
        works_there = db.scalar(
            select(exists().where(Shift.worker_id == actor.id, Shift.workplace_id == workplace_id))
        )
        if not works_there:
            raise NotPermitted("only workers of the same workplace may take this shift")


def _check_may_reject(req: ExchangeRequest, actor: User) -> None:
    if actor.is_admin or actor.id == req.requester_id:
        return
    if req.requestee_id is not None and actor.id == req.requestee_id:
        return
    raise NotPermitted()


def _pickup_taker(db: Session, req: ExchangeRequest, actor: User, taker_id: Optional[int]) -> int:
    """
    Who receives the request shift when a pickup is approved.

    An addressed request goes to its requestee. An open request goes to the
    approving worker; an admin approving it must name the taker.
    """
    if req.requestee_id is not None:
        if taker_id is not None and taker_id != req.requestee_id:
            raise InvalidExchange(f"exchange request {req.id} is addressed to user {req.requestee_id}")
        return req.requestee_id
    if not actor.is_admin:
        if taker_id is not None and taker_id != actor.id:
            raise NotPermitted("workers can only take an open shift for themselves")
        return actor.id
    if taker_id is None:
        raise InvalidExchange("taker_id is required when an admin approves an open request")
    taker = _get_user_or_404(db, taker_id)
    if taker.is_admin:
        raise InvalidExchange("open shifts go to workers, not admins")
    if taker.id == req.requester_id:
        raise InvalidExchange("the requester cannot take their own shift")
    return taker.id


def approve(
    db: Session,
    request_id: int,
    acting_user_id: int,
    *,
    taker_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ExchangeRequest:
    """
    Approve a pending request and move the shifts in the same transaction.

    ``taker_id`` names the worker who picks up an open request approved by an
    admin. Any failure rolls back the status change together with both shift
    writes.
    """
    req = get_exchange_request_or_404(db, request_id)
    actor = _get_user_or_404(db, acting_user_id)
    try:
        # lock order: shifts, then the request, then workers
        locked = shift_service.lock_shifts(db, [req.request_shift_id, req.offered_shift_id])
        db.refresh(req, with_for_update=True)
        if req.status != ExchangeStatus.pending:
            raise InvalidTransition(f"exchange request {req.id} is already {req.status.value}")
        _check_may_approve(db, req, actor)

        request_shift = locked.get(req.request_shift_id)
        if request_shift is None:
            raise NotFound("Shift not found")
        offered_shift = None
        if req.offered_shift_id is not None:
            offered_shift = locked.get(req.offered_shift_id)
            if offered_shift is None:
                raise NotFound("Shift not found")

        if offered_shift is None:
            taker_id = _pickup_taker(db, req, actor, taker_id)
        elif taker_id is not None and taker_id != req.requestee_id:
            raise InvalidExchange("a swap always goes to the owner of the offered shift")
        shift_service.lock_workers(db, [req.requester_id, req.requestee_id, taker_id])

        # ownership may have been edited since the proposal
        if request_shift.worker_id != req.requester_id:
            raise NotOwner(f"shift {request_shift.id} no longer belongs to user {req.requester_id}")
        if offered_shift is not None and offered_shift.worker_id != req.requestee_id:
            raise NotOwner(f"shift {offered_shift.id} no longer belongs to user {req.requestee_id}")

        outcome = plan_outcome(request_shift, offered_shift, taker_id)
        apply_outcome(db, outcome)
        _resolve(req, ExchangeStatus.approved, acting_user_id=actor.id, now=now)
        db.commit()
    except SchedulingError as exc:
        db.rollback()
        logger.warning("approval of exchange request %s by %s failed: %s", request_id, acting_user_id, exc.detail)
        raise
    except StaleDataError:
        db.rollback()
        logger.warning("approval of exchange request %s by %s lost to a concurrent resolution", request_id, acting_user_id)
        raise InvalidTransition(f"exchange request {request_id} was resolved concurrently")
    db.refresh(req)
    logger.info(
        "exchange request %s approved by %s (%s, workers %s)",
        req.id, actor.id, outcome.kind, gaining_workers(outcome),
    )
    return req


def reject(
    db: Session,
    request_id: int,
    acting_user_id: int,
    reason: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> ExchangeRequest:
    req = get_exchange_request_or_404(db, request_id)
    actor = _get_user_or_404(db, acting_user_id)
    try:
        db.refresh(req, with_for_update=True)
        if req.status != ExchangeStatus.pending:
            raise InvalidTransition(f"exchange request {req.id} is already {req.status.value}")
        _check_may_reject(req, actor)
        _resolve(req, ExchangeStatus.rejected, acting_user_id=actor.id, note=reason, now=now)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    except StaleDataError:
        db.rollback()
        raise InvalidTransition(f"exchange request {request_id} was resolved concurrently")
    db.refresh(req)
    logger.info("exchange request %s rejected by %s", req.id, actor.id)
    return req
