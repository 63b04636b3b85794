from __future__ import annotations
import logging
from typing import Optional, List, Literal

from sqlalchemy import select, update, or_
from sqlalchemy.orm import Session

from core.clock import Clock, utcnow
from core.config_loader import settings
from core.errors import NotFound, InvalidRecipient, AlreadyFinalized, MissingReason, Unauthorized
from approval.service import can_approve
from user.models import User
from .models import Thanks, ThanksStatus
from .schema import ThanksCreatePayload, ThanksAdminUpdate, UserStatsSchema, ThanksSchema

logger = logging.getLogger(__name__)

Action = Literal["approve", "reject"]

_NEWEST_FIRST = (Thanks.created_at.desc(), Thanks.id.desc())


# -------- helpers --------

def _require_user(db: Session, user_id: int, what: str = "user") -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound(f"{what} {user_id} not found", user_id=user_id)
    return user


def _require_thanks(db: Session, thanks_id: int) -> Thanks:
    row = db.get(Thanks, thanks_id)
    if row is None:
        raise NotFound(f"thanks {thanks_id} not found", thanks_id=thanks_id)
    return row


# -------- queries --------

def get_thanks(db: Session, thanks_id: int) -> Thanks | None:
    return db.get(Thanks, thanks_id)


def list_all(db: Session, *, status: Optional[ThanksStatus] = None) -> List[Thanks]:
    stmt = select(Thanks)
    if status is not None:
        stmt = stmt.where(Thanks.status == status)
    return list(db.scalars(stmt.order_by(*_NEWEST_FIRST)))


def list_recent(db: Session, *, limit: int = settings.RECENT_THANKS_LIMIT) -> List[Thanks]:
    """Public feed: the most recently created approved records."""
    stmt = (
        select(Thanks)
        .where(Thanks.status == ThanksStatus.approved)
        .order_by(*_NEWEST_FIRST)
        .limit(limit)
    )
    return list(db.scalars(stmt))


def list_for_user(db: Session, user_id: int) -> List[Thanks]:
    stmt = select(Thanks).where(or_(Thanks.from_id == user_id, Thanks.to_id == user_id))
    return list(db.scalars(stmt.order_by(*_NEWEST_FIRST)))


def user_stats(db: Session, user_id: int) -> UserStatsSchema:
    _require_user(db, user_id)

    received = list(db.scalars(
        select(Thanks)
        .where(Thanks.to_id == user_id, Thanks.status == ThanksStatus.approved)
        .order_by(*_NEWEST_FIRST)
    ))
    sent = list(db.scalars(
        select(Thanks).where(Thanks.from_id == user_id).order_by(*_NEWEST_FIRST)
    ))
    return UserStatsSchema(
        user_id=user_id,
        total_points=sum(t.points for t in received),
        received=[ThanksSchema.model_validate(t) for t in received],
        sent=[ThanksSchema.model_validate(t) for t in sent],
    )


# -------- workflow --------

def create_thanks(db: Session, from_id: int, payload: ThanksCreatePayload, clock: Clock = utcnow) -> Thanks:
    if payload.to_id == from_id:
        raise InvalidRecipient(f"user {from_id} cannot thank themselves", user_id=from_id)
    _require_user(db, from_id, "sender")
    _require_user(db, payload.to_id, "recipient")

    row = Thanks(
        from_id=from_id,
        to_id=payload.to_id,
        message=payload.message,
        created_at=clock(),
        status=ThanksStatus.pending,
        approved_by_id=None,
        approved_at=None,
        reject_reason=None,
        points=settings.THANKS_POINTS,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("thanks %s created: %s -> %s", row.id, from_id, payload.to_id)
    return row


def transition_thanks(
    db: Session,
    thanks_id: int,
    approver: User,
    action: Action,
    reason: Optional[str] = None,
    clock: Clock = utcnow,
) -> Thanks:
    """
    Approve or reject a pending record.
    - 404 if the record does not exist
    - 409 if it is no longer pending (terminal states never move)
    - 422 when rejecting without a reason
    - 403 if the approver has no standing over the recipient
    """
    row = _require_thanks(db, thanks_id)
    if row.status != ThanksStatus.pending:
        raise AlreadyFinalized(f"thanks {thanks_id} is already {row.status.value}", thanks_id=thanks_id)

    reason = (reason or "").strip() or None
    if action == "reject" and reason is None:
        raise MissingReason(f"thanks {thanks_id}: reject reason is required", thanks_id=thanks_id)

    if not can_approve(db, approver, row):
        raise Unauthorized(
            f"user {approver.id} may not decide thanks {thanks_id}",
            thanks_id=thanks_id,
            approver_id=approver.id,
        )

    new_status = ThanksStatus.approved if action == "approve" else ThanksStatus.rejected
    # guarded write: only one concurrent approver can move it off pending
    result = db.execute(
        update(Thanks)
        .where(Thanks.id == thanks_id, Thanks.status == ThanksStatus.pending)
        .values(
            status=new_status,
            approved_by_id=approver.id,
            approved_at=clock(),
            reject_reason=reason if new_status == ThanksStatus.rejected else None,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise AlreadyFinalized(f"thanks {thanks_id} was decided concurrently", thanks_id=thanks_id)

    db.commit()
    db.refresh(row)
    logger.info("thanks %s %s by user %s", thanks_id, new_status.value, approver.id)
    return row


# -------- admin override --------

def admin_update_thanks(
    db: Session,
    thanks_id: int,
    admin: User,
    patch: ThanksAdminUpdate,
    clock: Clock = utcnow,
) -> Thanks:
    """Edit any record, finalized or not. Approval fields stay paired with status."""
    row = _require_thanks(db, thanks_id)
    data = patch.model_dump(exclude_unset=True)

    from_id = data.get("from_id") or row.from_id
    to_id = data.get("to_id") or row.to_id
    if from_id == to_id:
        raise InvalidRecipient(f"thanks {thanks_id}: sender and recipient must differ", thanks_id=thanks_id)
    _require_user(db, from_id, "sender")
    _require_user(db, to_id, "recipient")

    new_status = data.get("status") or row.status
    reason = (data.get("reject_reason") or row.reject_reason or "").strip() or None
    if new_status == ThanksStatus.rejected and reason is None:
        raise MissingReason(f"thanks {thanks_id}: reject reason is required", thanks_id=thanks_id)

    row.from_id = from_id
    row.to_id = to_id
    if data.get("message") is not None:
        row.message = data["message"]

    if new_status == ThanksStatus.pending:
        row.approved_by_id = None
        row.approved_at = None
        row.reject_reason = None
    else:
        if new_status != row.status or row.approved_at is None:
            row.approved_by_id = admin.id
            row.approved_at = clock()
        row.reject_reason = reason if new_status == ThanksStatus.rejected else None
    row.status = new_status

    db.commit()
    db.refresh(row)
    logger.warning("admin %s overrode thanks %s (status=%s)", admin.id, thanks_id, row.status.value)
    return row


def admin_delete_thanks(db: Session, thanks_id: int) -> None:
    row = _require_thanks(db, thanks_id)
    db.delete(row)
    db.commit()
    logger.warning("thanks %s deleted by admin", thanks_id)
