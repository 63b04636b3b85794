import unittest
from types import SimpleNamespace as Obj
from unittest.mock import patch
from datetime import datetime, timezone
from fastapi.testclient import TestClient

from main import app
from core.clock import get_clock
from core.database import get_db
from core.errors import AlreadyFinalized, MissingReason, Unauthorized, InvalidRecipient
from auth.services.auth_service import get_current_active_user
from thanks.models import ThanksStatus
from thanks.schema import UserStatsSchema
from user.models import UserRole

NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)


def _thanks(**overrides):
    data = dict(
        id=1,
        from_id=7,
        to_id=8,
        message="thanks!",
        created_at=NOW,
        status=ThanksStatus.pending,
        approved_by_id=None,
        approved_at=None,
        reject_reason=None,
        points=1,
    )
    data.update(overrides)
    return Obj(**data)


class ThanksRouterTests(unittest.TestCase):
    def setUp(self):
        class FakeDB:
            def rollback(self): ...
        def _fake_db():
            yield FakeDB()

        self.user = Obj(id=7, role=UserRole.employee)
        app.dependency_overrides[get_db] = _fake_db
        app.dependency_overrides[get_current_active_user] = lambda: self.user
        app.dependency_overrides[get_clock] = lambda: (lambda: NOW)

        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_current_active_user, None)
        app.dependency_overrides.pop(get_clock, None)

    # ---------- CREATE ----------
    @patch("thanks.router.service.create_thanks")
    def test_send_uses_session_user_as_sender(self, mock_create):
        mock_create.return_value = _thanks()
        resp = self.client.post("/api/thanks", json={"to_id": 8, "message": "thanks!"})
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["status"], "pending")

        args, kwargs = mock_create.call_args
        self.assertEqual(args[1], 7)
        self.assertEqual(args[2].to_id, 8)
        self.assertIs(kwargs["clock"](), NOW)

    def test_send_rejects_from_id_in_body(self):
        resp = self.client.post("/api/thanks", json={"from_id": 99, "to_id": 8, "message": "x"})
        self.assertEqual(resp.status_code, 422)

    def test_send_rejects_empty_message(self):
        resp = self.client.post("/api/thanks", json={"to_id": 8, "message": ""})
        self.assertEqual(resp.status_code, 422)

    @patch("thanks.router.service.create_thanks", side_effect=InvalidRecipient("user 7 cannot thank themselves"))
    def test_send_self_400(self, _mock):
        resp = self.client.post("/api/thanks", json={"to_id": 7, "message": "me"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("themselves", resp.json()["detail"])

    # ---------- READ ----------
    @patch("thanks.router.service.list_recent")
    def test_recent_passes_limit(self, mock_recent):
        mock_recent.return_value = [_thanks(status=ThanksStatus.approved, approved_by_id=2, approved_at=NOW)]
        resp = self.client.get("/api/thanks/recent?limit=5")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(len(resp.json()), 1)
        _, kwargs = mock_recent.call_args
        self.assertEqual(kwargs["limit"], 5)

    def test_recent_limit_bounds(self):
        self.assertEqual(self.client.get("/api/thanks/recent?limit=0").status_code, 422)

    @patch("thanks.router.service.list_for_user")
    def test_mine_scoped_to_caller(self, mock_mine):
        mock_mine.return_value = []
        resp = self.client.get("/api/thanks/mine")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(mock_mine.call_args[0][1], 7)

    @patch("thanks.router.service.get_thanks", return_value=None)
    def test_detail_404(self, _mock):
        resp = self.client.get("/api/thanks/42")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "thanks not found")

    @patch("thanks.router.service.user_stats")
    def test_stats(self, mock_stats):
        mock_stats.return_value = UserStatsSchema(user_id=8, total_points=3, received=[], sent=[])
        resp = self.client.get("/api/stats/8")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["total_points"], 3)

    # ---------- DECIDE ----------
    @patch("thanks.router.service.transition_thanks")
    def test_approve_without_body(self, mock_transition):
        mock_transition.return_value = _thanks(status=ThanksStatus.approved, approved_by_id=7, approved_at=NOW)
        resp = self.client.post("/api/thanks/1/approve")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["status"], "approved")

        args, _ = mock_transition.call_args
        self.assertEqual(args[1:5], (1, self.user, "approve", None))

    @patch("thanks.router.service.transition_thanks")
    def test_reject_passes_reason(self, mock_transition):
        mock_transition.return_value = _thanks(status=ThanksStatus.rejected, approved_by_id=7, approved_at=NOW, reject_reason="dup")
        resp = self.client.post("/api/thanks/1/reject", json={"reason": "dup"})
        self.assertEqual(resp.status_code, 200, resp.text)
        args, _ = mock_transition.call_args
        self.assertEqual(args[3:5], ("reject", "dup"))

    def test_unknown_action_422(self):
        resp = self.client.post("/api/thanks/1/cancel")
        self.assertEqual(resp.status_code, 422)

    @patch("thanks.router.service.transition_thanks", side_effect=AlreadyFinalized("thanks 1 is already approved"))
    def test_decide_twice_409(self, _mock):
        self.assertEqual(self.client.post("/api/thanks/1/approve").status_code, 409)

    @patch("thanks.router.service.transition_thanks", side_effect=MissingReason())
    def test_reject_without_reason_422(self, _mock):
        resp = self.client.post("/api/thanks/1/reject")
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["detail"], "reject reason is required")

    @patch("thanks.router.service.transition_thanks", side_effect=Unauthorized())
    def test_decide_unauthorized_403(self, _mock):
        self.assertEqual(self.client.post("/api/thanks/1/approve").status_code, 403)


class ThanksAdminRouterTests(unittest.TestCase):
    def setUp(self):
        class FakeDB:
            def rollback(self): ...
        def _fake_db():
            yield FakeDB()

        self.user = Obj(id=1, role=UserRole.admin)
        app.dependency_overrides[get_db] = _fake_db
        app.dependency_overrides[get_current_active_user] = lambda: self.user
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_current_active_user, None)

    @patch("thanks.router.service.list_all")
    def test_admin_list_filters_status(self, mock_list):
        mock_list.return_value = []
        resp = self.client.get("/api/admin/thanks?status=rejected")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(mock_list.call_args.kwargs["status"], ThanksStatus.rejected)

    @patch("thanks.router.service.admin_update_thanks")
    def test_admin_patch(self, mock_update):
        mock_update.return_value = _thanks(message="edited")
        resp = self.client.patch("/api/admin/thanks/1", json={"message": "edited", "status": "pending"})
        self.assertEqual(resp.status_code, 200, resp.text)
        patch_arg = mock_update.call_args[0][3]
        self.assertEqual(patch_arg.status, ThanksStatus.pending)

    def test_admin_patch_same_parties_422(self):
        resp = self.client.patch("/api/admin/thanks/1", json={"from_id": 3, "to_id": 3})
        self.assertEqual(resp.status_code, 422)

    @patch("thanks.router.service.admin_delete_thanks")
    def test_admin_delete(self, mock_delete):
        resp = self.client.delete("/api/admin/thanks/5")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "thanks deleted"})
        self.assertEqual(mock_delete.call_args[0][1], 5)

    def test_non_admin_forbidden(self):
        self.user.role = UserRole.manager
        resp = self.client.get("/api/admin/thanks")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["detail"], "Admin role required")


if __name__ == "__main__":
    unittest.main()
