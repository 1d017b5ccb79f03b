import datetime as dt
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, computed_field, field_validator, model_validator

from core.intervals import duration, to_utc

class ShiftSchema(BaseModel):
    id: int
    workplace_id: int
    worker_id: Optional[int] = None
    date: dt.date
    start_at: dt.datetime
    end_at: dt.datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def hours(self) -> float:
        return round(duration(self.start_at, self.end_at), 2)

class ShiftCreatePayload(BaseModel):
    workplace_id: int
    worker_id: Optional[int] = None
    date: Optional[dt.date] = Field(None, description="Calendar day; defaults to the UTC day of start_at")
    start_at: dt.datetime = Field(..., description="TZ-aware ISO8601")
    end_at: dt.datetime = Field(..., description="TZ-aware ISO8601")
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("start_at", "end_at")
    @classmethod
    def tz_aware(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            raise ValueError("Datetime must be timezone-aware (e.g., 2025-10-16T09:00:00Z)")
        return value

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self

# Internal DTO the service uses
class ShiftCreate(BaseModel):
    workplace_id: int
    worker_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_at: dt.datetime
    end_at: dt.datetime
    notes: Optional[str] = None

    @field_validator("start_at", "end_at")
    @classmethod
    def as_utc(cls, value: dt.datetime) -> dt.datetime:
        return to_utc(value)

class ShiftUpdate(BaseModel):
    workplace_id: Optional[int] = None
    worker_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_at: Optional[dt.datetime] = None
    end_at: Optional[dt.datetime] = None
    notes: Optional[str] = None

    @field_validator("start_at", "end_at")
    @classmethod
    def tz_aware(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        if value is None:
            return None
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            raise ValueError("Datetime must be timezone-aware (e.g., 2025-10-16T09:00:00Z)")
        return to_utc(value)

    @model_validator(mode="after")
    def check_dates_if_both_present(self):
        if self.start_at is not None and self.end_at is not None and self.start_at >= self.end_at:
            raise ValueError("start_at must be before end_at")
        return self
