import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from auth.utils.auth_utils import verify_password, get_password_hash
from core.database import Base
from core.errors import NotFound, DuplicateKey, AdminImmutable, ValidationFailed

from user.models import User, UserRole
from user import service
from user.schemas import UserCreate, UserUpdate, PasswordChange


class UserServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        TestingSession = sessionmaker(bind=self.engine, future=True)
        self.db: Session = TestingSession()

        self.admin = User(username="root", email="root@example.com", password_hash="x", name="Root", role=UserRole.admin)
        self.boss = User(username="boss", email="boss@example.com", password_hash="x", name="Boss", role=UserRole.manager)
        self.db.add_all([self.admin, self.boss])
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _create(self, username="sam", **extra):
        data = {"username": username, "email": f"{username}@example.com", "password": "hunter22", "name": "Sam"}
        data.update(extra)
        return service.create_user(self.db, UserCreate(**data))

    def test_create_user_hashes_password(self):
        u = self._create(manager_id=self.boss.id)
        self.assertEqual(u.role, UserRole.employee)
        self.assertEqual(u.manager_id, self.boss.id)
        self.assertNotEqual(u.password_hash, "hunter22")
        self.assertTrue(verify_password("hunter22", u.password_hash))

    def test_create_duplicate_username(self):
        self._create()
        with self.assertRaises(DuplicateKey) as ctx:
            self._create(email="other@example.com")
        self.assertEqual(ctx.exception.status_code, 409)

    def test_create_duplicate_email(self):
        self._create()
        with self.assertRaises(DuplicateKey):
            self._create(username="sam2", email="sam@example.com")

    def test_create_unknown_manager(self):
        with self.assertRaises(NotFound):
            self._create(manager_id=999)

    def test_create_schema_refuses_admin_role(self):
        with self.assertRaises(ValueError):
            UserCreate(username="x", email="x@example.com", password="hunter22", name="X", role="admin")

    def test_list_and_reports(self):
        a = self._create("zed", name="Zed", manager_id=self.boss.id)
        b = self._create("amy", name="Amy", manager_id=self.boss.id)
        self._create("lone", name="Lone")
        self.assertEqual([u.id for u in service.get_direct_reports(self.db, self.boss.id)], [b.id, a.id])
        names = [u.name for u in service.get_users(self.db)]
        self.assertEqual(names, sorted(names))

    def test_update_user_partial(self):
        u = self._create(title="Dev")
        out = service.update_user(self.db, u.id, UserUpdate(department="Ops"))
        self.assertEqual((out.title, out.department), ("Dev", "Ops"))

    def test_update_rejects_null_name(self):
        u = self._create()
        with self.assertRaises(ValidationFailed):
            service.update_user(self.db, u.id, UserUpdate(name=None))

    def test_update_email_taken(self):
        u = self._create()
        with self.assertRaises(DuplicateKey):
            service.update_user(self.db, u.id, UserUpdate(email="boss@example.com"))

    def test_update_unknown(self):
        with self.assertRaises(NotFound):
            service.update_user(self.db, 999, UserUpdate(title="x"))

    def test_change_role(self):
        u = self._create()
        self.assertEqual(service.change_role(self.db, u.id, "manager").role, UserRole.manager)
        self.assertEqual(service.change_role(self.db, u.id, "employee").role, UserRole.employee)

    def test_change_role_admin_immutable(self):
        with self.assertRaises(AdminImmutable):
            service.change_role(self.db, self.admin.id, "employee")

    def test_change_role_cannot_grant_admin(self):
        u = self._create()
        with self.assertRaises(ValidationFailed):
            service.change_role(self.db, u.id, "admin")

    def test_demoted_manager_keeps_reports(self):
        r = self._create(manager_id=self.boss.id)
        service.change_role(self.db, self.boss.id, "employee")
        self.db.expire_all()
        self.assertEqual(self.db.get(User, r.id).manager_id, self.boss.id)

    def test_reset_and_change_password(self):
        u = self._create()
        service.reset_password(self.db, u.id, "newpass1")
        self.assertTrue(verify_password("newpass1", self.db.get(User, u.id).password_hash))

        with self.assertRaises(ValidationFailed):
            service.change_password(self.db, u.id, PasswordChange(current_password="wrong", new_password="another1"))

        service.change_password(self.db, u.id, PasswordChange(current_password="newpass1", new_password="another1"))
        self.assertTrue(verify_password("another1", self.db.get(User, u.id).password_hash))

    def test_hash_is_salted(self):
        self.assertNotEqual(get_password_hash("same-pass"), get_password_hash("same-pass"))


if __name__ == "__main__":
    unittest.main()
