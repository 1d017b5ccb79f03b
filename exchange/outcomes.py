"""
What approving an exchange request does to the shifts.

A request with an offered shift is a ``Swap``: the two shifts trade owners.
Without one it is a ``Pickup``: the taker becomes the owner of the request shift.
Both are applied inside the caller's transaction and re-check the no-double-booking
rule for every worker that gains a shift; the caller rolls back on failure.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from sqlalchemy.orm import Session

from shift import service as shift_service
from shift.models import Shift


@dataclass(frozen=True)
class Swap:
    kind: ClassVar[str] = "swap"
    request_shift: Shift
    offered_shift: Shift


@dataclass(frozen=True)
class Pickup:
    kind: ClassVar[str] = "pickup"
    request_shift: Shift
    taker_id: int


ExchangeOutcome = Union[Swap, Pickup]


def plan_outcome(
    request_shift: Shift,
    offered_shift: Optional[Shift],
    taker_id: Optional[int],
) -> ExchangeOutcome:
    if offered_shift is not None:
        return Swap(request_shift=request_shift, offered_shift=offered_shift)
    if taker_id is None:
        raise ValueError("a pickup needs a taker")
    return Pickup(request_shift=request_shift, taker_id=taker_id)


def gaining_workers(outcome: ExchangeOutcome) -> list[int]:
    if isinstance(outcome, Swap):
        return [w for w in (outcome.offered_shift.worker_id, outcome.request_shift.worker_id) if w is not None]
    return [outcome.taker_id]


def apply_outcome(db: Session, outcome: ExchangeOutcome) -> None:
    if isinstance(outcome, Swap):
        _apply_swap(db, outcome)
    elif isinstance(outcome, Pickup):
        _apply_pickup(db, outcome)
    else:
        raise TypeError(f"unknown exchange outcome {outcome!r}")


def _apply_swap(db: Session, outcome: Swap) -> None:
    x, y = outcome.request_shift, outcome.offered_shift
    owner_x, owner_y = x.worker_id, y.worker_id
    pair = {x.id, y.id}

    # both shifts change hands at once, so neither counts against its new owner
    x.worker_id = owner_y
    db.flush()
    shift_service.assert_no_conflict(db, owner_y, x.start_at, x.end_at, exclude_shift_id=pair)

    y.worker_id = owner_x
    db.flush()
    shift_service.assert_no_conflict(db, owner_x, y.start_at, y.end_at, exclude_shift_id=pair)


def _apply_pickup(db: Session, outcome: Pickup) -> None:
    shift = outcome.request_shift
    shift.worker_id = outcome.taker_id
    db.flush()
    shift_service.assert_no_conflict(db, outcome.taker_id, shift.start_at, shift.end_at, exclude_shift_id=shift.id)
