import logging
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from auth.utils.auth_utils import get_password_hash, verify_password
from core.errors import NotFound, DuplicateKey, AdminImmutable, ValidationFailed
from .models import User, UserRole
from .schemas import UserCreate, UserUpdate, PasswordChange

logger = logging.getLogger(__name__)


def get_users(db: Session) -> List[User]:
    stmt = select(User).order_by(User.name.asc(), User.id.asc())
    return list(db.scalars(stmt))


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.scalars(select(User).where(User.username == username)).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.scalars(select(User).where(User.email == email)).first()


def get_direct_reports(db: Session, manager_id: int) -> List[User]:
    stmt = select(User).where(User.manager_id == manager_id).order_by(User.name.asc(), User.id.asc())
    return list(db.scalars(stmt))


def _require_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound(f"user {user_id} not found", user_id=user_id)
    return user


def create_user(db: Session, user: UserCreate) -> User:
    if get_user_by_username(db, user.username):
        raise DuplicateKey(f"username {user.username} already exists", username=user.username)
    if get_user_by_email(db, str(user.email)):
        raise DuplicateKey(f"email {user.email} already exists", email=str(user.email))
    if user.manager_id is not None and db.get(User, user.manager_id) is None:
        raise NotFound(f"manager {user.manager_id} not found", manager_id=user.manager_id)

    db_user = User(
        username=user.username,
        email=str(user.email),
        password_hash=get_password_hash(user.password),
        name=user.name,
        title=user.title,
        department=user.department,
        manager_id=user.manager_id,
        role=UserRole(user.role),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("registered user %s (%s)", db_user.id, db_user.username)
    return db_user


def update_user(db: Session, user_id: int, patch: UserUpdate) -> User:
    db_user = _require_user(db, user_id)

    data = patch.model_dump(exclude_unset=True)
    for required in ("name", "email"):
        if required in data and data[required] is None:
            raise ValidationFailed(f"{required} cannot be empty", user_id=user_id)

    if "email" in data:
        data["email"] = str(data["email"])
        other = get_user_by_email(db, data["email"])
        if other is not None and other.id != user_id:
            raise DuplicateKey(f"email {data['email']} already exists", email=data["email"])

    for k, v in data.items():
        setattr(db_user, k, v)
    db.commit()
    db.refresh(db_user)
    return db_user


def change_role(db: Session, user_id: int, role: str) -> User:
    db_user = _require_user(db, user_id)
    if db_user.role == UserRole.admin:
        raise AdminImmutable(f"user {user_id} is an admin", user_id=user_id)
    if role not in (UserRole.employee.value, UserRole.manager.value):
        raise ValidationFailed(f"role {role} cannot be assigned", user_id=user_id)

    db_user.role = UserRole(role)
    db.commit()
    db.refresh(db_user)
    logger.info("user %s role set to %s", user_id, role)
    return db_user


def reset_password(db: Session, user_id: int, new_password: str) -> None:
    db_user = _require_user(db, user_id)
    db_user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info("password reset for user %s", user_id)


def change_password(db: Session, user_id: int, payload: PasswordChange) -> None:
    db_user = _require_user(db, user_id)
    if not verify_password(payload.current_password, db_user.password_hash):
        raise ValidationFailed("current password is incorrect", user_id=user_id)
    db_user.password_hash = get_password_hash(payload.new_password)
    db.commit()
