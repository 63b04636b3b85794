import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.database import Base, get_db
from auth.utils.auth_utils import create_access_token
from scripts.create_admin import create_admin


class AuthFlowTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, future=True)

        def _get_db_override():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _get_db_override
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        self.engine.dispose()

    def _register(self, username="kim", **extra):
        payload = {"username": username, "email": f"{username}@example.com", "password": "pa55word", "name": "Kim"}
        payload.update(extra)
        return self.client.post("/api/auth/register", json=payload)

    def _login(self, username="kim", password="pa55word"):
        return self.client.post("/api/auth/token", data={"username": username, "password": password})

    def test_register_login_me(self):
        resp = self._register()
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["role"], "employee")

        resp = self._login()
        self.assertEqual(resp.status_code, 200, resp.text)
        token = resp.json()["access_token"]
        self.assertEqual(resp.json()["token_type"], "bearer")

        me = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200, me.text)
        self.assertEqual(me.json()["username"], "kim")

    def test_register_cannot_self_promote(self):
        self.assertEqual(self._register(role="admin").status_code, 422)

    def test_register_duplicate_409(self):
        self._register()
        self.assertEqual(self._register(email="kim2@example.com").status_code, 409)

    def test_wrong_password_401(self):
        self._register()
        self.assertEqual(self._login(password="nope").status_code, 401)

    def test_no_token_401(self):
        self.assertEqual(self.client.get("/api/thanks/mine").status_code, 401)

    def test_garbage_token_401(self):
        resp = self.client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(resp.status_code, 401)

    def test_token_for_deleted_user_401(self):
        token = create_access_token("4242")
        resp = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)

    def test_change_password(self):
        self._register()
        token = self._login().json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        bad = self.client.post("/api/auth/change-password", headers=headers,
                               json={"current_password": "wrong", "new_password": "newpass9"})
        self.assertEqual(bad.status_code, 422)

        ok = self.client.post("/api/auth/change-password", headers=headers,
                              json={"current_password": "pa55word", "new_password": "newpass9"})
        self.assertEqual(ok.status_code, 200, ok.text)
        self.assertEqual(self._login(password="newpass9").status_code, 200)

    def test_bootstrapped_admin_can_use_admin_routes(self):
        with self.SessionLocal() as db:
            create_admin(db, "boss", "boss@example.com", "Boss", "adminpass")
            with self.assertRaises(ValueError):
                create_admin(db, "boss", "other@example.com", "Boss", "adminpass")

        token = self._login("boss", "adminpass").json()["access_token"]
        resp = self.client.get("/api/admin/thanks", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 200, resp.text)

        self._register()
        kim_token = self._login().json()["access_token"]
        resp = self.client.get("/api/admin/thanks", headers={"Authorization": f"Bearer {kim_token}"})
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()
