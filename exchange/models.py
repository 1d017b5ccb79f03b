from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import DateTime, Integer, Text, ForeignKey, Enum as SAEnum, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

class ExchangeStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

class ExchangeRequest(Base):
    __tablename__ = "exchange_requests"

    id: Mapped[int] = mapped_column(primary_key=True)

    requester_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    # NULL = open to any eligible worker
    requestee_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )

    # required on creation; resolved requests keep their row after a shift is deleted
    request_shift_id: Mapped[int | None] = mapped_column(
        ForeignKey("shifts.id", ondelete="SET NULL"), index=True, nullable=True
    )
    offered_shift_id: Mapped[int | None] = mapped_column(
        ForeignKey("shifts.id", ondelete="SET NULL"), index=True, nullable=True
    )

    status: Mapped[ExchangeStatus] = mapped_column(
        SAEnum(ExchangeStatus, name="exchange_status"), nullable=False,
        default=ExchangeStatus.pending,
        server_default=ExchangeStatus.pending.value,
    )
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    resolution_note: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # bumped on every write; a stale status write fails instead of overwriting
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))

    __mapper_args__ = {"version_id_col": version}

    # relationships
    request_shift = relationship("Shift", foreign_keys=[request_shift_id])
    offered_shift = relationship("Shift", foreign_keys=[offered_shift_id])

Index("ix_exchange_requests_status", ExchangeRequest.status)
