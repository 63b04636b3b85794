from __future__ import annotations
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.clock import Clock, get_clock
from core.config_loader import settings
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_admin

from .models import ThanksStatus
from .schema import ThanksSchema, ThanksCreatePayload, ThanksDecisionPayload, ThanksAdminUpdate, UserStatsSchema
from . import service

thanks_router = APIRouter(prefix="/thanks", tags=["Thanks"])
stats_router = APIRouter(prefix="/stats", tags=["Thanks"])
thanks_admin_router = APIRouter(prefix="/admin/thanks", tags=["Admin"])

# Send thanks
@thanks_router.post("", response_model=ThanksSchema, status_code=status.HTTP_201_CREATED)
def send_thanks(
    payload: ThanksCreatePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    clock: Clock = Depends(get_clock),
):
    return service.create_thanks(db, user.id, payload, clock=clock)

# Recently approved thanks (public feed)
@thanks_router.get("/recent", response_model=list[ThanksSchema])
def recent_thanks(
    limit: int = Query(settings.RECENT_THANKS_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    _user = Depends(get_current_active_user),
):
    return service.list_recent(db, limit=limit)

# Everything the caller sent or received
@thanks_router.get("/mine", response_model=list[ThanksSchema])
def my_thanks(
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    return service.list_for_user(db, user.id)

# Get by id
@thanks_router.get("/{thanks_id}", response_model=ThanksSchema)
def thanks_detail(
    thanks_id: int,
    db: Session = Depends(get_db),
    _user = Depends(get_current_active_user),
):
    obj = service.get_thanks(db, thanks_id)
    if not obj:
        raise HTTPException(status_code=404, detail="thanks not found")
    return obj

# Approve / reject
@thanks_router.post("/{thanks_id}/{action}", response_model=ThanksSchema)
def decide_thanks(
    thanks_id: int,
    action: Literal["approve", "reject"],
    payload: Optional[ThanksDecisionPayload] = None,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    clock: Clock = Depends(get_clock),
):
    reason = payload.reason if payload else None
    return service.transition_thanks(db, thanks_id, user, action, reason, clock=clock)

# Received / sent summary for a user
@stats_router.get("/{user_id}", response_model=UserStatsSchema)
def user_stats(
    user_id: int,
    db: Session = Depends(get_db),
    _user = Depends(get_current_active_user),
):
    return service.user_stats(db, user_id)

# ---------- admin override ----------

@thanks_admin_router.get("", response_model=list[ThanksSchema])
def admin_list_thanks(
    status: Optional[ThanksStatus] = Query(None),
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    return service.list_all(db, status=status)

@thanks_admin_router.patch("/{thanks_id}", response_model=ThanksSchema)
def admin_update_thanks(
    thanks_id: int,
    payload: ThanksAdminUpdate,
    db: Session = Depends(get_db),
    admin = Depends(require_admin),
    clock: Clock = Depends(get_clock),
):
    return service.admin_update_thanks(db, thanks_id, admin, payload, clock=clock)

@thanks_admin_router.delete("/{thanks_id}")
def admin_delete_thanks(
    thanks_id: int,
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    service.admin_delete_thanks(db, thanks_id)
    return {"message": "thanks deleted"}
