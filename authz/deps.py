from fastapi import Depends, HTTPException
from auth.services.auth_service import get_current_active_user
from user.models import User, UserRole

def require_admin(user: User = Depends(get_current_active_user)) -> User:
    if user.role != UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user

def require_manager_or_admin(user: User = Depends(get_current_active_user)) -> User:
    if user.role not in (UserRole.manager, UserRole.admin):
        raise HTTPException(status_code=403, detail="Manager role required")
    return user
