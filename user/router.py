from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.services.auth_service import get_current_active_user
from core.database import get_db
from user.models import User, UserRole
from authz.deps import require_admin
from user.schemas import UserSchema, UserUpdate, RoleUpdate, PasswordReset
from user import service

user_router = APIRouter(
    prefix='/users',
    tags=['Users']
)

# Get all users
@user_router.get('', response_model=list[UserSchema])
def user_list(db: Session = Depends(get_db), _user: User = Depends(get_current_active_user)):
    return service.get_users(db)

# Get user details
@user_router.get('/{user_id}', response_model=UserSchema)
def user_detail(user_id: int, db: Session = Depends(get_db), _user: User = Depends(get_current_active_user)):
    db_user = service.get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user

# Direct reports of a manager (the manager themself or an admin)
@user_router.get('/{user_id}/reports', response_model=list[UserSchema])
def user_reports(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_active_user)):
    if current_user.role != UserRole.admin and current_user.id != user_id:
        raise HTTPException(status_code=403, detail="forbidden: cannot view another manager's reports")
    return service.get_direct_reports(db, user_id)

# Edit user attributes
@user_router.patch('/{user_id}', response_model=UserSchema)
def user_patch(user_id: int, payload: UserUpdate, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    try:
        return service.update_user(db, user_id, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="email already exists")

# Change role
@user_router.patch('/{user_id}/role', response_model=UserSchema)
def user_role(user_id: int, payload: RoleUpdate, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return service.change_role(db, user_id, payload.role)

# Reset password
@user_router.post('/{user_id}/reset-password')
def user_reset_password(user_id: int, payload: PasswordReset, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    service.reset_password(db, user_id, payload.new_password)
    return {"message": "password reset"}
