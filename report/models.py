from __future__ import annotations
from datetime import datetime
from sqlalchemy import DateTime, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base

class Report(Base):
    """Worked time of one user in one calendar month, frozen when generated."""
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # whole minutes; hours are derived
    total_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    shift_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_reports_month"),
    )

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60

Index("ix_reports_user_period", Report.user_id, Report.year, Report.month)
