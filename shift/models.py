from __future__ import annotations
from typing import TYPE_CHECKING
import datetime as dt
from sqlalchemy import Date, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base
from core.intervals import Interval

if TYPE_CHECKING:
    from workplace.models import Workplace

class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(primary_key=True)

    workplace_id: Mapped[int] = mapped_column(
        ForeignKey("workplaces.id", ondelete="RESTRICT"), index=True
    )
    # NULL = open shift, nobody assigned yet
    worker_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )

    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)
    start_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # relationships
    workplace: Mapped["Workplace"] = relationship("Workplace")

    @property
    def interval(self) -> Interval:
        return Interval(self.start_at, self.end_at)

# overlap checks scan one worker's shifts by start time
Index("ix_shifts_worker_start", Shift.worker_id, Shift.start_at)
Index("ix_shifts_date", Shift.date)
