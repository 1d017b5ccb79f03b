from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field

from core.intervals import format_duration


class ReportSchema(BaseModel):
    id: int
    user_id: int
    month: int
    year: int
    total_minutes: int
    shift_count: int
    generated_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def total_hours(self) -> float:
        return round(self.total_minutes / 60, 2)

    @computed_field
    @property
    def total_display(self) -> str:
        return format_duration(self.total_minutes / 60)


# PUBLIC payload; user_id defaults to the caller
class ReportGeneratePayload(BaseModel):
    user_id: Optional[int] = None
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1970, le=9999)
    model_config = ConfigDict(extra="forbid")


class WorkerStats(BaseModel):
    user_id: int
    planned_hours: float
    worked_hours: float
    upcoming_shifts: int
    pending_exchange_requests: int
