from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from .models import ExchangeStatus


class ExchangeRequestSchema(BaseModel):
    id: int
    requester_id: int
    requestee_id: Optional[int] = None
    request_shift_id: Optional[int] = None
    offered_shift_id: Optional[int] = None
    status: ExchangeStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    resolution_note: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


# PUBLIC payload from clients; the requester is the calling user
class ExchangeRequestCreatePayload(BaseModel):
    request_shift_id: int = Field(..., description="Shift of the caller they want to hand over")
    offered_shift_id: Optional[int] = Field(
        None, description="Counterpart's shift the caller takes in return; omit for a straight pickup"
    )
    requestee_id: Optional[int] = Field(None, description="Addressed worker; omit for an open request")
    notes: Optional[str] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def distinct_shifts(self):
        if self.offered_shift_id is not None and self.offered_shift_id == self.request_shift_id:
            raise ValueError("offered_shift_id must differ from request_shift_id")
        return self


class ExchangeRejectPayload(BaseModel):
    reason: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class ExchangeApprovePayload(BaseModel):
    taker_id: Optional[int] = Field(None, description="Worker who takes an open shift; required when an admin approves one")
    model_config = ConfigDict(extra="forbid")
