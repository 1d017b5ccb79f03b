import unittest
from types import SimpleNamespace as Obj
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from main import app
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from user.models import UserRole


class WorkplaceRouterTests(unittest.TestCase):
    def setUp(self):
        class FakeDB:
            def rollback(self): pass
        def _fake_db():
            yield FakeDB()

        app.dependency_overrides[get_db] = _fake_db
        app.dependency_overrides[get_current_active_user] = lambda: Obj(id=1, role=UserRole.admin)

        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_current_active_user, None)

    # --- LIST ---

    @patch("workplace.router.service.get_workplaces")
    def test_list_workplaces(self, mock_get):
        mock_get.return_value = [Obj(id=1, name="HQ", type="office", address=None, notes=None, manager_id=None)]
        resp = self.client.get("/api/workplaces?type=office")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()[0]["name"], "HQ")
        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs.get("type"), "office")

    # --- GET ---

    @patch("workplace.router.service.get_workplace")
    def test_get_workplace_404(self, mock_get):
        mock_get.return_value = None
        resp = self.client.get("/api/workplaces/999")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "Workplace not found")

    # --- POST ---

    @patch("workplace.router.service.create_workplace")
    def test_create_workplace_201(self, mock_create):
        mock_create.return_value = Obj(id=5, name="Arena", type="event", address=None, notes=None, manager_id=None)
        resp = self.client.post("/api/workplaces", json={"name": "Arena", "type": "event"})
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["type"], "event")

    @patch("workplace.router.service.create_workplace")
    def test_create_workplace_unknown_manager_409(self, mock_create):
        mock_create.side_effect = IntegrityError("stmt", {}, Exception("fk"))
        resp = self.client.post("/api/workplaces", json={"name": "Arena", "manager_id": 77})
        self.assertEqual(resp.status_code, 409)

    def test_create_workplace_worker_forbidden(self):
        app.dependency_overrides[get_current_active_user] = lambda: Obj(id=2, role=UserRole.worker)
        resp = self.client.post("/api/workplaces", json={"name": "Arena"})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["detail"], "Admin role required")

    # --- DELETE ---

    @patch("workplace.router.service.delete_workplace")
    @patch("workplace.router.service.get_workplace")
    def test_delete_workplace_with_shifts_409(self, mock_get, mock_delete):
        mock_get.return_value = Obj(id=5)
        mock_delete.side_effect = IntegrityError("stmt", {}, Exception("fk"))
        resp = self.client.delete("/api/workplaces/5")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["detail"], "Workplace still has shifts")


if __name__ == "__main__":
    unittest.main()
