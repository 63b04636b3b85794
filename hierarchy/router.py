from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_admin
from user.schemas import UserSchema

from .schema import (
    ManagerUpdate,
    BulkUpdateRequest,
    BulkUpdateResult,
    DeleteUserResult,
    ImportRequest,
    ImportResult,
)
from . import service

hierarchy_router = APIRouter(prefix="/org/users", tags=["Organization"])

# Reassign (or clear) a user's manager
@hierarchy_router.patch("/{user_id}/manager", response_model=UserSchema)
def reassign_manager(
    user_id: int,
    payload: ManagerUpdate,
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    return service.reassign_manager(db, user_id, payload.manager_id)

# Same change for many users, all or nothing
@hierarchy_router.post("/bulk-update", response_model=BulkUpdateResult)
def bulk_update(
    payload: BulkUpdateRequest,
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    return service.bulk_update(db, payload)

# Import employees; bad rows are skipped and reported
@hierarchy_router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
def bulk_import(
    payload: ImportRequest,
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    try:
        return service.bulk_import(db, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="import conflicts with existing users, nothing was inserted")

# Delete a user together with their thanks
@hierarchy_router.delete("/{user_id}", response_model=DeleteUserResult)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _admin = Depends(require_admin),
):
    return service.delete_user(db, user_id)
