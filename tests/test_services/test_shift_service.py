# tests/test_services/test_shift_service.py
import os
import tempfile
import unittest
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

from core.config_loader import settings
from core.database import Base
from core.errors import InvalidInterval, NotFound, ReferencedByPendingExchange, SchedulingConflict
from core.intervals import aware, overlaps
from exchange.models import ExchangeRequest, ExchangeStatus
from shift import service
from shift.models import Shift
from shift.schemas import ShiftCreate, ShiftUpdate
from user.models import User, UserRole
from workplace.models import Workplace, WorkplaceType
import models_bootstrap


def utc(day, hour, minute=0, month=3, year=2030):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class ShiftServiceTests(unittest.TestCase):
    def setUp(self):
        # Fresh in-memory DB
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        TestingSession = sessionmaker(bind=self.engine, future=True)
        self.db = TestingSession()

        # --- seed workers & workplace ---
        self.wendy = User(username="wendy", display_name="Wendy", role=UserRole.worker)
        self.bob = User(username="bob", display_name="Bob", role=UserRole.worker)
        self.db.add_all([self.wendy, self.bob])
        self.db.flush()

        wp = Workplace(name="Central warehouse", type=WorkplaceType.warehouse)
        self.db.add(wp)
        self.db.flush()
        self.workplace_id = wp.id

        # Wendy works 09:00-17:00 on the 4th
        self.day_shift = Shift(
            workplace_id=self.workplace_id,
            worker_id=self.wendy.id,
            date=date(2030, 3, 4),
            start_at=utc(4, 9),
            end_at=utc(4, 17),
            notes="day",
        )
        self.db.add(self.day_shift)
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _create(self, worker_id, start, end, **extra):
        return service.create_shift(
            self.db,
            ShiftCreate(workplace_id=self.workplace_id, worker_id=worker_id, start_at=start, end_at=end, **extra),
        )

    def _assert_no_double_booking(self, worker_id):
        rows = service.list_shifts_for_worker(self.db, worker_id)
        for i, a in enumerate(rows):
            for b in rows[i + 1:]:
                self.assertFalse(overlaps(a.interval, b.interval), (a.id, b.id))

    # ---- create_shift ----
    def test_create_shift_inserts_and_returns(self):
        created = self._create(self.bob.id, utc(5, 8), utc(5, 16), notes="new day")
        self.assertIsInstance(created.id, int)

        again = service.get_shift(self.db, created.id)
        self.assertEqual(again.worker_id, self.bob.id)
        self.assertEqual(again.notes, "new day")
        self.assertEqual(again.date, date(2030, 3, 5))

    def test_create_overlapping_shift_conflicts(self):
        with self.assertRaises(SchedulingConflict) as cm:
            self._create(self.wendy.id, utc(4, 16), utc(4, 20))
        self.assertEqual(cm.exception.status_code, 409)
        self.assertEqual(cm.exception.conflicting_ids, [self.day_shift.id])
        self.assertEqual(len(service.list_shifts_for_worker(self.db, self.wendy.id)), 1)

    def test_create_touching_shift_succeeds(self):
        created = self._create(self.wendy.id, utc(4, 17), utc(4, 20))
        self.assertEqual(created.worker_id, self.wendy.id)
        self._assert_no_double_booking(self.wendy.id)

    def test_create_overlapping_for_other_worker_succeeds(self):
        created = self._create(self.bob.id, utc(4, 9), utc(4, 17))
        self.assertEqual(created.worker_id, self.bob.id)

    def test_create_unassigned_shift_skips_overlap_check(self):
        first = self._create(None, utc(4, 9), utc(4, 17))
        second = self._create(None, utc(4, 10), utc(4, 12))
        self.assertIsNone(first.worker_id)
        self.assertIsNone(second.worker_id)

    def test_create_end_before_start_invalid(self):
        with self.assertRaises(InvalidInterval):
            self._create(self.bob.id, utc(5, 17), utc(5, 9))

    def test_create_zero_length_invalid(self):
        with self.assertRaises(InvalidInterval):
            self._create(self.bob.id, utc(5, 9), utc(5, 9))

    def test_create_keeps_explicit_date(self):
        # night shift booked on the day it starts locally
        created = self._create(self.bob.id, utc(5, 23), utc(6, 7), date=date(2030, 3, 6))
        self.assertEqual(created.date, date(2030, 3, 6))

    # ---- update_shift ----
    def test_update_shift_end_time_only(self):
        after = service.update_shift(self.db, self.day_shift.id, ShiftUpdate(end_at=utc(4, 18)))
        self.assertEqual(aware(after.end_at), utc(4, 18))
        self.assertEqual(aware(after.start_at), utc(4, 9))

    def test_update_does_not_conflict_with_itself(self):
        after = service.update_shift(self.db, self.day_shift.id, ShiftUpdate(start_at=utc(4, 8)))
        self.assertEqual(aware(after.start_at), utc(4, 8))

    def test_update_reassign_to_busy_worker_conflicts(self):
        bobs = self._create(self.bob.id, utc(4, 12), utc(4, 20))
        with self.assertRaises(SchedulingConflict):
            service.update_shift(self.db, self.day_shift.id, ShiftUpdate(worker_id=self.bob.id))
        self.assertEqual(service.get_shift(self.db, self.day_shift.id).worker_id, self.wendy.id)
        self.assertEqual(service.get_shift(self.db, bobs.id).worker_id, self.bob.id)

    def test_update_moving_into_overlap_conflicts(self):
        evening = self._create(self.wendy.id, utc(4, 18), utc(4, 22))
        with self.assertRaises(SchedulingConflict):
            service.update_shift(self.db, evening.id, ShiftUpdate(start_at=utc(4, 16)))
        self.assertEqual(aware(service.get_shift(self.db, evening.id).start_at), utc(4, 18))

    def test_update_unassign(self):
        after = service.update_shift(self.db, self.day_shift.id, ShiftUpdate(worker_id=None))
        self.assertIsNone(after.worker_id)

    def test_update_invalid_dates_422(self):
        # only start_at is sent, so the schema cannot see that it passes the stored end_at
        patch_ = ShiftUpdate(start_at=utc(4, 18))
        with self.assertRaises(InvalidInterval) as cm:
            service.update_shift(self.db, self.day_shift.id, patch_)
        self.assertEqual(cm.exception.status_code, 422)

    def test_update_moves_date_with_start(self):
        after = service.update_shift(
            self.db, self.day_shift.id, ShiftUpdate(start_at=utc(6, 9), end_at=utc(6, 17))
        )
        self.assertEqual(after.date, date(2030, 3, 6))

    def test_update_shift_not_found_404(self):
        with self.assertRaises(NotFound) as cm:
            service.update_shift(self.db, 999999, ShiftUpdate(notes="doesn't matter"))
        self.assertEqual(cm.exception.status_code, 404)

    # ---- delete_shift ----
    def test_delete_shift_existing(self):
        shift_id = self.day_shift.id
        service.delete_shift(self.db, shift_id)
        self.assertIsNone(service.get_shift(self.db, shift_id))

    def test_delete_shift_missing_404(self):
        with self.assertRaises(NotFound):
            service.delete_shift(self.db, 999999)

    def _pending_request_on_day_shift(self):
        req = ExchangeRequest(
            requester_id=self.wendy.id,
            requestee_id=None,
            request_shift_id=self.day_shift.id,
            status=ExchangeStatus.pending,
        )
        self.db.add(req)
        self.db.commit()
        return req

    def test_delete_blocked_by_pending_exchange(self):
        self._pending_request_on_day_shift()
        with self.assertRaises(ReferencedByPendingExchange) as cm:
            service.delete_shift(self.db, self.day_shift.id)
        self.assertEqual(cm.exception.status_code, 409)
        self.assertIsNotNone(service.get_shift(self.db, self.day_shift.id))

    def test_delete_allowed_once_exchange_resolved(self):
        req = self._pending_request_on_day_shift()
        req.status = ExchangeStatus.rejected
        self.db.commit()
        shift_id = self.day_shift.id
        service.delete_shift(self.db, shift_id)
        self.assertIsNone(service.get_shift(self.db, shift_id))

    def test_delete_cascade_rejects_when_configured(self):
        req = self._pending_request_on_day_shift()
        shift_id = self.day_shift.id
        with patch.object(settings, "PENDING_EXCHANGE_ON_SHIFT_DELETE", "reject"):
            service.delete_shift(self.db, shift_id)
        self.assertIsNone(service.get_shift(self.db, shift_id))
        self.db.refresh(req)
        self.assertEqual(req.status, ExchangeStatus.rejected)
        self.assertEqual(req.resolution_note, "shift deleted")

    # ---- queries ----
    def test_list_shifts_for_worker_ordered_and_ranged(self):
        later = self._create(self.wendy.id, utc(10, 9), utc(10, 12))
        earlier = self._create(self.wendy.id, utc(2, 9), utc(2, 12))
        rows = service.list_shifts_for_worker(self.db, self.wendy.id)
        self.assertEqual([r.id for r in rows], [earlier.id, self.day_shift.id, later.id])

        ranged = service.list_shifts_for_worker(
            self.db, self.wendy.id, date_from=date(2030, 3, 3), date_to=date(2030, 3, 10)
        )
        self.assertEqual([r.id for r in ranged], [self.day_shift.id, later.id])

        # restartable: a second call yields the same sequence
        self.assertEqual([r.id for r in service.list_shifts_for_worker(self.db, self.wendy.id)],
                         [r.id for r in rows])

    def test_find_conflicts(self):
        evening = self._create(self.wendy.id, utc(4, 18), utc(4, 22))
        hits = service.find_conflicts(self.db, self.wendy.id, utc(4, 16), utc(4, 19))
        self.assertEqual({s.id for s in hits}, {self.day_shift.id, evening.id})

        excluded = service.find_conflicts(self.db, self.wendy.id, utc(4, 16), utc(4, 19), self.day_shift.id)
        self.assertEqual([s.id for s in excluded], [evening.id])

        self.assertEqual(service.find_conflicts(self.db, self.wendy.id, utc(4, 17), utc(4, 18)), [])

    def test_get_shifts_window_and_filters(self):
        self._create(self.bob.id, utc(5, 9), utc(5, 17))
        self._create(None, utc(6, 9), utc(6, 17))
        rows = service.get_shifts(self.db, start=utc(5, 8), end=utc(5, 12))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].worker_id, self.bob.id)

        open_rows = service.get_shifts(self.db, unassigned=True)
        self.assertEqual(len(open_rows), 1)
        self.assertIsNone(open_rows[0].worker_id)

        self.assertEqual(len(service.get_shifts(self.db, workplace_id=self.workplace_id)), 3)

    def test_lock_workers_locks_rows_in_id_order(self):
        db = MagicMock()
        service.lock_workers(db, [5, None, 2, 5])
        stmt = db.execute.call_args[0][0]
        compiled = stmt.compile(dialect=postgresql.dialect())
        self.assertIn("FOR UPDATE", str(compiled))
        self.assertIn([2, 5], list(compiled.params.values()))

    def test_lock_workers_noop_for_unassigned(self):
        db = MagicMock()
        service.lock_workers(db, [None])
        db.execute.assert_not_called()

    def test_lock_shifts_selects_for_update_in_id_order(self):
        db = MagicMock()
        service.lock_shifts(db, [9, None, 4])
        stmt = db.scalars.call_args[0][0]
        compiled = stmt.compile(dialect=postgresql.dialect())
        self.assertIn("FOR UPDATE", str(compiled))
        self.assertIn("ORDER BY shifts.id", str(compiled))
        self.assertIn([4, 9], list(compiled.params.values()))

    def test_lock_shifts_skips_missing(self):
        locked = service.lock_shifts(self.db, [self.day_shift.id, 999999, None])
        self.assertEqual(list(locked), [self.day_shift.id])
        self.assertEqual(service.lock_shifts(self.db, [None]), {})


class ShiftConcurrentUpdateTests(unittest.TestCase):
    """Two sessions on one database file, so a commit in one is visible to the other."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        path = os.path.join(self.tmpdir.name, "shifts.db")
        self.engine = create_engine(f"sqlite:///{path}", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True)

        with self.Session() as db:
            wendy = User(username="wendy", display_name="Wendy", role=UserRole.worker)
            bob = User(username="bob", display_name="Bob", role=UserRole.worker)
            wp = Workplace(name="Central warehouse", type=WorkplaceType.warehouse)
            db.add_all([wendy, bob, wp])
            db.flush()
            shift = Shift(
                workplace_id=wp.id, worker_id=wendy.id, date=date(2030, 3, 4), start_at=utc(4, 9), end_at=utc(4, 17)
            )
            db.add(shift)
            db.commit()
            self.wendy_id, self.bob_id, self.shift_id = wendy.id, bob.id, shift.id

    def tearDown(self):
        self.engine.dispose()
        self.tmpdir.cleanup()

    def test_update_locks_owner_read_after_shift_lock(self):
        with self.Session() as db:
            # stale copy still says Wendy
            self.assertEqual(db.get(Shift, self.shift_id).worker_id, self.wendy_id)
            with self.Session() as other:
                other.get(Shift, self.shift_id).worker_id = self.bob_id
                other.commit()

            with patch("shift.service.lock_workers", wraps=service.lock_workers) as spy:
                row = service.update_shift(db, self.shift_id, ShiftUpdate(notes="moved"))

            locked_ids = [w for w in spy.call_args[0][1] if w is not None]
            self.assertEqual(locked_ids, [self.bob_id])
            self.assertEqual(row.worker_id, self.bob_id)
            self.assertEqual(row.notes, "moved")


if __name__ == "__main__":
    unittest.main()
