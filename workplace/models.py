from __future__ import annotations
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base

class WorkplaceType(str, Enum):
    warehouse = "warehouse"
    event = "event"
    club = "club"
    office = "office"
    other = "other"

class Workplace(Base):
    __tablename__ = "workplaces"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # display / grouping only, scheduling rules do not look at it
    type: Mapped[WorkplaceType] = mapped_column(
        SAEnum(WorkplaceType, name="workplace_type"), nullable=False, default=WorkplaceType.other
    )
    address: Mapped[str | None] = mapped_column(Text(), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    manager_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )
