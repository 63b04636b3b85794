from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_manager_or_admin
from thanks.schema import ThanksSchema
from . import service

approval_router = APIRouter(prefix="/approvals", tags=["Approvals"])

# Pending queue for the caller (manager: direct reports, admin: everything)
@approval_router.get("", response_model=list[ThanksSchema])
def list_pending(
    db: Session = Depends(get_db),
    approver = Depends(require_manager_or_admin),
):
    return service.pending_queue_for(db, approver)
