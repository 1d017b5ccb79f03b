# report/service.py
from __future__ import annotations
import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, func, delete
from sqlalchemy.orm import Session

from core.config_loader import settings
from core.errors import InvalidPeriod, NotFound
from core.intervals import aware, duration, round_to_minutes, to_utc
from exchange.models import ExchangeRequest, ExchangeStatus
from shift import service as shift_service
from user.models import User
from .models import Report
from .schemas import WorkerStats

logger = logging.getLogger(__name__)


def _month_bounds(month: int, year: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise InvalidPeriod()
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def generate(
    db: Session,
    user_id: int,
    month: int,
    year: int,
    *,
    now: Optional[datetime] = None,
) -> Report:
    """
    Sum the user's shift hours for one calendar month into a new report.

    Shifts count by their ``date``. The total is rounded to whole minutes. The
    stored report never changes afterwards, whatever happens to the shifts.
    """
    first, last = _month_bounds(month, year)
    if not db.get(User, user_id):
        raise NotFound("User not found")

    shifts = shift_service.list_shifts_for_worker(db, user_id, date_from=first, date_to=last)
    total_hours = sum(duration(s.start_at, s.end_at) for s in shifts)

    if settings.REPORT_REGENERATION == "replace":
        db.execute(
            delete(Report).where(Report.user_id == user_id, Report.month == month, Report.year == year)
        )

    row = Report(
        user_id=user_id,
        month=month,
        year=year,
        total_minutes=round_to_minutes(total_hours),
        shift_count=len(shifts),
        generated_at=to_utc(now or datetime.now(timezone.utc)),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(
        "report %s generated for user %s %04d-%02d: %s shifts, %s minutes",
        row.id, user_id, year, month, row.shift_count, row.total_minutes,
    )
    return row


def get_report(db: Session, report_id: int) -> Report | None:
    return db.get(Report, report_id)


def list_reports(db: Session, user_id: int) -> List[Report]:
    stmt = (
        select(Report)
        .where(Report.user_id == user_id)
        .order_by(Report.year.desc(), Report.month.desc(), Report.generated_at.desc(), Report.id.desc())
    )
    return list(db.scalars(stmt))


def get_worker_stats(db: Session, user_id: int, *, now: Optional[datetime] = None) -> WorkerStats:
    """Dashboard figures for the current month of ``now``."""
    now = to_utc(now or datetime.now(timezone.utc))
    first, last = _month_bounds(now.month, now.year)

    month_shifts = shift_service.list_shifts_for_worker(db, user_id, date_from=first, date_to=last)
    planned = sum(duration(s.start_at, s.end_at) for s in month_shifts)
    worked = sum(duration(s.start_at, s.end_at) for s in month_shifts if aware(s.end_at) <= now)

    horizon = now + timedelta(days=settings.UPCOMING_SHIFTS_DAYS)
    upcoming = sum(
        1 for s in shift_service.get_shifts(db, worker_id=user_id, start=now, end=horizon)
        if aware(s.start_at) >= now
    )

    pending = db.scalar(
        select(func.count(ExchangeRequest.id)).where(
            ExchangeRequest.status == ExchangeStatus.pending,
            ExchangeRequest.requestee_id == user_id,
        )
    ) or 0

    return WorkerStats(
        user_id=user_id,
        planned_hours=round_to_minutes(planned) / 60,
        worked_hours=round_to_minutes(worked) / 60,
        upcoming_shifts=upcoming,
        pending_exchange_requests=pending,
    )
