from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import authenticate_user, get_current_active_user
from auth.utils.auth_utils import create_access_token
from user.models import User
from user.schemas import UserSchema, UserCreate, PasswordChange
from user import service as user_service

auth_router = APIRouter(prefix="/auth", tags=["Auth"])

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Log in (OAuth2 password flow)
@auth_router.post("/token", response_model=Token)
def login(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = authenticate_user(db, form.username, form.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=create_access_token(str(user.id)))

# Register a new account
@auth_router.post("/register", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    try:
        return user_service.create_user(db, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="username or email already exists")

# Current user
@auth_router.get("/me", response_model=UserSchema)
def me(current_user: User = Depends(get_current_active_user)):
    return current_user

# Change own password
@auth_router.post("/change-password")
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    user_service.change_password(db, current_user.id, payload)
    return {"message": "password changed"}
