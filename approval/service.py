from __future__ import annotations
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.errors import Forbidden
from thanks.models import Thanks, ThanksStatus
from user.models import User, UserRole

# No caching anywhere in here: the report set is re-read on every call so
# a manager reassignment takes effect on the very next decision.


def direct_report_ids(db: Session, manager_id: int) -> set[int]:
    return set(db.scalars(select(User.id).where(User.manager_id == manager_id)))


def can_approve(db: Session, approver: User, thanks: Thanks) -> bool:
    """
    Admins may decide any record. Managers only records whose recipient
    reports to them directly (one hop, never transitive). Nobody else.
    """
    if approver.role == UserRole.admin:
        return True
    if approver.role != UserRole.manager:
        return False
    recipient_manager = db.scalar(select(User.manager_id).where(User.id == thanks.to_id))
    return recipient_manager is not None and recipient_manager == approver.id


def pending_queue_for(db: Session, approver: User) -> List[Thanks]:
    stmt = select(Thanks).where(Thanks.status == ThanksStatus.pending)
    if approver.role == UserRole.manager:
        reports = direct_report_ids(db, approver.id)
        if not reports:
            return []
        stmt = stmt.where(Thanks.to_id.in_(reports))
    elif approver.role != UserRole.admin:
        raise Forbidden(f"user {approver.id} has no approval queue", user_id=approver.id)

    stmt = stmt.order_by(Thanks.created_at.desc(), Thanks.id.desc())
    return list(db.scalars(stmt))
