"""
Typed failures raised by the scheduling core.

Each kind is an ``HTTPException`` so the routers can let it propagate and
FastAPI renders the matching status code; callers that use the services
directly catch the specific class.
"""
from __future__ import annotations
from typing import Iterable

from fastapi import HTTPException


class SchedulingError(HTTPException):
    status_code: int = 400
    default_detail: str = "scheduling error"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)


class InvalidInterval(SchedulingError):
    status_code = 422
    default_detail = "end_at must be after start_at"


class SchedulingConflict(SchedulingError):
    status_code = 409
    default_detail = "worker is already booked in that interval"

    def __init__(self, worker_id: int, conflicting_ids: Iterable[int], detail: str | None = None):
        self.worker_id = worker_id
        self.conflicting_ids = sorted(conflicting_ids)
        super().__init__(
            detail
            or f"worker {worker_id} is already booked in that interval (shifts {self.conflicting_ids})"
        )


class NotFound(SchedulingError):
    status_code = 404
    default_detail = "not found"


class NotOwner(SchedulingError):
    status_code = 403
    default_detail = "shift does not belong to this worker"


class NotPermitted(SchedulingError):
    status_code = 403
    default_detail = "user may not act on this exchange request"


class ShiftInPast(SchedulingError):
    status_code = 422
    default_detail = "cannot exchange a shift that has already started"


class InvalidTransition(SchedulingError):
    status_code = 409
    default_detail = "exchange request is already resolved"


class ReferencedByPendingExchange(SchedulingError):
    status_code = 409
    default_detail = "shift is part of a pending exchange request"


class InvalidExchange(SchedulingError):
    status_code = 422
    default_detail = "exchange request is malformed"


class InvalidPeriod(SchedulingError):
    status_code = 422
    default_detail = "month must be between 1 and 12"
