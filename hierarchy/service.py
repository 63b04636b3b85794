from __future__ import annotations
import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth.utils.auth_utils import get_password_hash
from core.config_loader import settings
from core.errors import (
    NotFound,
    AdminImmutable,
    SelfManagement,
    CycleDetected,
    NoEligibleTargets,
    ValidationFailed,
    DuplicateKey,
)
from thanks.models import Thanks
from user.models import User, UserRole
from .schema import (
    BulkUpdateRequest,
    BulkUpdateResult,
    DeleteUserResult,
    ImportRequest,
    ImportResult,
    ImportRow,
    ManagerClear,
    ManagerSet,
    SkippedRow,
)

logger = logging.getLogger(__name__)


# ---------- helpers ----------

def _require_user(db: Session, user_id: int, what: str = "user") -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound(f"{what} {user_id} not found", user_id=user_id)
    return user


def _chain_reaches(db: Session, start_id: int, targets: set[int]) -> bool:
    """
    Walk manager_id pointers upward from start_id and report whether any
    id in `targets` is met. Hops are capped at the user count; running past
    the cap means the stored tree already loops, which counts as a hit.
    """
    cap = db.scalar(select(func.count(User.id))) or 0
    hops = 0
    current: Optional[int] = start_id
    while current is not None:
        if current in targets:
            return True
        hops += 1
        if hops > cap:
            return True
        current = db.scalar(select(User.manager_id).where(User.id == current))
    return False


def _check_new_manager(db: Session, manager_id: int, target_ids: set[int]) -> None:
    if manager_id in target_ids:
        raise SelfManagement(f"user {manager_id} cannot manage themselves", user_id=manager_id)
    _require_user(db, manager_id, "manager")
    if _chain_reaches(db, manager_id, target_ids):
        raise CycleDetected(
            f"manager {manager_id} reports (directly or not) to one of {sorted(target_ids)}",
            manager_id=manager_id,
            user_ids=sorted(target_ids),
        )


# ---------- single reassignment ----------

def reassign_manager(db: Session, user_id: int, new_manager_id: Optional[int]) -> User:
    user = _require_user(db, user_id)
    if user.role == UserRole.admin:
        raise AdminImmutable(f"user {user_id} is an admin", user_id=user_id)

    if new_manager_id is not None:
        _check_new_manager(db, new_manager_id, {user_id})

    user.manager_id = new_manager_id
    db.commit()
    db.refresh(user)
    logger.info("user %s now reports to %s", user_id, new_manager_id)
    return user


# ---------- bulk update ----------

def bulk_update(db: Session, request: BulkUpdateRequest) -> BulkUpdateResult:
    """
    Apply the same field changes to every selected non-admin user, all or nothing.
    Admins in the selection are skipped silently.
    """
    ids = list(dict.fromkeys(request.user_ids))
    users = {u.id: u for u in db.scalars(select(User).where(User.id.in_(ids)))}

    missing = [i for i in ids if i not in users]
    if missing:
        raise NotFound(f"users {missing} not found", user_ids=missing)

    excluded = [i for i in ids if users[i].role == UserRole.admin]
    targets = [users[i] for i in ids if users[i].role != UserRole.admin]
    if not targets:
        raise NoEligibleTargets("selection contains no non-admin users", user_ids=ids)

    target_ids = {u.id for u in targets}
    if isinstance(request.manager, ManagerSet):
        _check_new_manager(db, request.manager.manager_id, target_ids)

    changed = request.model_fields_set
    try:
        for u in targets:
            if "title" in changed:
                u.title = request.title
            if "department" in changed:
                u.department = request.department
            if isinstance(request.manager, ManagerSet):
                u.manager_id = request.manager.manager_id
            elif isinstance(request.manager, ManagerClear):
                u.manager_id = None
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("bulk update applied to %d users (excluded admins: %s)", len(targets), excluded)
    return BulkUpdateResult(updated_ids=[u.id for u in targets], excluded_admin_ids=excluded)


# ---------- cascading delete ----------

def delete_user(db: Session, user_id: int) -> DeleteUserResult:
    """
    Remove a user in one transaction:
    - direct reports lose their manager
    - every thanks the user sent, received or decided is hard-deleted
    - the user row goes last
    """
    user = _require_user(db, user_id)
    if user.role == UserRole.admin:
        raise AdminImmutable(f"user {user_id} is an admin and cannot be deleted", user_id=user_id)

    try:
        report_ids = list(db.scalars(select(User.id).where(User.manager_id == user_id)))
        db.execute(
            update(User)
            .where(User.manager_id == user_id)
            .values(manager_id=None)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(
            delete(Thanks)
            .where(or_(
                Thanks.from_id == user_id,
                Thanks.to_id == user_id,
                Thanks.approved_by_id == user_id,
            ))
            .execution_options(synchronize_session=False)
        )
        db.execute(
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("delete of user %s rolled back", user_id)
        raise

    logger.info(
        "deleted user %s: %d reports unassigned, %d thanks removed",
        user_id, len(report_ids), result.rowcount,
    )
    return DeleteUserResult(
        user_id=user_id,
        orphaned_report_ids=report_ids,
        deleted_thanks_count=result.rowcount,
    )


# ---------- bulk import ----------

def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e["loc"])
        parts.append(f"{loc}: {e['msg']}" if loc else e["msg"])
    return "; ".join(parts)


def _chunks(items: list, size: int) -> Iterable[list]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _raw_username(raw: Any) -> Optional[str]:
    value = raw.get("username") if isinstance(raw, dict) else None
    return str(value).strip() if value is not None else None


def bulk_import(db: Session, request: ImportRequest, *, batch_size: Optional[int] = None) -> ImportResult:
    """
    Insert every valid, novel row; skip and report the rest.
    Duplicates are detected against stored users and earlier rows of the same upload.
    """
    batch_size = batch_size or settings.IMPORT_BATCH_SIZE
    skipped: list[SkippedRow] = []
    accepted: list[ImportRow] = []

    parsed: list[tuple[int, ImportRow]] = []
    for index, raw in enumerate(request.rows, start=1):
        try:
            parsed.append((index, ImportRow.model_validate(raw)))
        except ValidationError as e:
            skipped.append(SkippedRow(row=index, username=_raw_username(raw), reason=_describe(e), error=ValidationFailed.code))

    names = {row.username for _, row in parsed}
    emails = {str(row.email) for _, row in parsed}
    taken_usernames = set(db.scalars(select(User.username).where(User.username.in_(names))))
    taken_emails = set(db.scalars(select(User.email).where(User.email.in_(emails))))
    known_managers: dict[int, bool] = {}

    for index, row in parsed:
        email = str(row.email)
        if row.username in taken_usernames:
            skipped.append(SkippedRow(row=index, username=row.username, reason="username exists", error=DuplicateKey.code))
            continue
        if email in taken_emails:
            skipped.append(SkippedRow(row=index, username=row.username, reason="email exists", error=DuplicateKey.code))
            continue
        if row.manager_id is not None:
            if row.manager_id not in known_managers:
                known_managers[row.manager_id] = db.get(User, row.manager_id) is not None
            if not known_managers[row.manager_id]:
                skipped.append(SkippedRow(row=index, username=row.username, reason="manager not found", error=NotFound.code))
                continue

        taken_usernames.add(row.username)
        taken_emails.add(email)
        accepted.append(row)

    if accepted:
        password_hash = get_password_hash(request.default_password)
        try:
            for chunk in _chunks(accepted, batch_size):
                db.add_all([
                    User(
                        username=row.username,
                        email=str(row.email),
                        password_hash=password_hash,
                        name=row.name,
                        title=row.title,
                        department=row.department,
                        manager_id=row.manager_id,
                        role=UserRole(row.role),
                    )
                    for row in chunk
                ])
                db.flush()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("bulk import rolled back")
            raise

    skipped.sort(key=lambda s: s.row)
    logger.info("bulk import: %d inserted, %d skipped", len(accepted), len(skipped))
    return ImportResult(inserted_count=len(accepted), skipped=skipped)
