# shift/service.py
from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core.config_loader import settings
from core.errors import (
    InvalidInterval,
    InvalidTransition,
    NotFound,
    ReferencedByPendingExchange,
    SchedulingConflict,
    SchedulingError,
)
from core.intervals import aware, to_utc
from user.models import User
from .models import Shift
from .schemas import ShiftCreate, ShiftUpdate

logger = logging.getLogger(__name__)


def _id_set(ids: int | Iterable[int] | None) -> set[int]:
    if ids is None:
        return set()
    if isinstance(ids, int):
        return {ids}
    return set(ids)


def lock_shifts(db: Session, shift_ids: Iterable[int | None]) -> dict[int, Shift]:
    """
    Lock the given shift rows, ascending by id, and reload them from the database.

    Returns the locked shifts by id; ids that no longer exist are missing from
    the result. Writers take shift locks before exchange request locks and
    before worker locks.
    """
    ids = sorted({s for s in shift_ids if s is not None})
    if not ids:
        return {}
    stmt = (
        select(Shift)
        .where(Shift.id.in_(ids))
        .order_by(Shift.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {row.id: row for row in db.scalars(stmt)}


def lock_workers(db: Session, worker_ids: Iterable[int | None]) -> None:
    """
    Take row locks on the given workers' user rows for the rest of the transaction.

    Every validate-then-write on a worker's shifts goes through this lock, so two
    writers touching the same worker are serialized. Ids are locked in ascending
    order. SQLite ignores FOR UPDATE but serializes writers on its own.
    """
    ids = sorted({w for w in worker_ids if w is not None})
    if not ids:
        return
    db.execute(select(User.id).where(User.id.in_(ids)).order_by(User.id).with_for_update())


def get_shift(db: Session, shift_id: int) -> Shift | None:
    return db.get(Shift, shift_id)


def get_shifts(
    db: Session,
    *,
    worker_id: Optional[int] = None,
    workplace_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    unassigned: bool = False,
) -> list[Shift]:
    stmt = select(Shift)
    if worker_id is not None:
        stmt = stmt.where(Shift.worker_id == worker_id)
    elif unassigned:
        stmt = stmt.where(Shift.worker_id.is_(None))
    if workplace_id is not None:
        stmt = stmt.where(Shift.workplace_id == workplace_id)
    if start is not None:
        stmt = stmt.where(Shift.end_at > to_utc(start))    # overlaps window
    if end is not None:
        stmt = stmt.where(Shift.start_at < to_utc(end))    # overlaps window
    stmt = stmt.order_by(Shift.start_at, Shift.id)
    return list(db.scalars(stmt))


def list_shifts_for_worker(
    db: Session,
    worker_id: int,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[Shift]:
    """The worker's shifts by ascending start time, optionally limited to an inclusive range of days."""
    stmt = select(Shift).where(Shift.worker_id == worker_id)
    if date_from is not None:
        stmt = stmt.where(Shift.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Shift.date <= date_to)
    stmt = stmt.order_by(Shift.start_at, Shift.id)
    return list(db.scalars(stmt))


def find_conflicts(
    db: Session,
    worker_id: int,
    start: datetime,
    end: datetime,
    exclude_shift_id: int | Iterable[int] | None = None,
) -> list[Shift]:
    """Every shift of ``worker_id`` whose interval overlaps ``[start, end)``."""
    stmt = select(Shift).where(
        Shift.worker_id == worker_id,
        Shift.start_at < to_utc(end),
        Shift.end_at > to_utc(start),
    )
    excluded = _id_set(exclude_shift_id)
    if excluded:
        stmt = stmt.where(Shift.id.not_in(excluded))
    stmt = stmt.order_by(Shift.start_at, Shift.id)
    return list(db.scalars(stmt))


def assert_no_conflict(
    db: Session,
    worker_id: int | None,
    start: datetime,
    end: datetime,
    exclude_shift_id: int | Iterable[int] | None = None,
) -> None:
    if worker_id is None:
        return
    conflicts = find_conflicts(db, worker_id, start, end, exclude_shift_id)
    if conflicts:
        ids = [c.id for c in conflicts]
        logger.warning("worker %s double-booking refused, overlaps shifts %s", worker_id, ids)
        raise SchedulingConflict(worker_id, ids)


def create_shift(db: Session, shift: ShiftCreate) -> Shift:
    start_at, end_at = to_utc(shift.start_at), to_utc(shift.end_at)
    if end_at <= start_at:
        raise InvalidInterval()

    row = Shift(
        workplace_id=shift.workplace_id,
        worker_id=shift.worker_id,
        date=shift.date or start_at.date(),
        start_at=start_at,
        end_at=end_at,
        notes=shift.notes,
    )
    try:
        lock_workers(db, [shift.worker_id])
        assert_no_conflict(db, shift.worker_id, start_at, end_at)
        db.add(row)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    db.refresh(row)
    logger.info("shift %s created for worker %s at workplace %s", row.id, row.worker_id, row.workplace_id)
    return row


def update_shift(db: Session, shift_id: int, patch: ShiftUpdate) -> Shift:
    data = patch.model_dump(exclude_unset=True)
    # only worker_id and notes may be cleared
    for key in ("workplace_id", "date", "start_at", "end_at"):
        if key in data and data[key] is None:
            del data[key]
    for key in ("start_at", "end_at"):
        if key in data:
            data[key] = to_utc(data[key])

    try:
        row = lock_shifts(db, [shift_id]).get(shift_id)
        if row is None:
            raise NotFound("Shift not found")
        # current owner, read under the shift lock
        lock_workers(db, [row.worker_id, data.get("worker_id")])

        new_start = aware(data.get("start_at", row.start_at))
        new_end = aware(data.get("end_at", row.end_at))
        if new_end <= new_start:
            raise InvalidInterval()
        if "start_at" in data and "date" not in data:
            data["date"] = new_start.date()

        new_worker = data.get("worker_id", row.worker_id)
        assert_no_conflict(db, new_worker, new_start, new_end, exclude_shift_id=row.id)
        for k, v in data.items():
            setattr(row, k, v)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    db.refresh(row)
    logger.info("shift %s updated (%s)", row.id, ", ".join(sorted(data)) or "no changes")
    return row


def delete_shift(db: Session, shift_id: int) -> None:
    # deferred: exchange.service imports this module
    from exchange import service as exchange_service

    try:
        row = lock_shifts(db, [shift_id]).get(shift_id)
        if row is None:
            raise NotFound("Shift not found")
        if settings.PENDING_EXCHANGE_ON_SHIFT_DELETE == "block":
            pending = exchange_service.pending_for_shift(db, shift_id)
            if pending:
                raise ReferencedByPendingExchange(
                    f"shift {shift_id} is part of pending exchange request(s) {[r.id for r in pending]}"
                )
        else:
            exchange_service.cancel_pending_for_shift(db, shift_id, reason="shift deleted")
        db.delete(row)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    except StaleDataError:
        db.rollback()
        logger.warning("shift %s not deleted: a pending exchange request was resolved concurrently", shift_id)
        raise InvalidTransition(
            f"an exchange request on shift {shift_id} was resolved concurrently; shift not deleted"
        )
    logger.info("shift %s deleted", shift_id)
