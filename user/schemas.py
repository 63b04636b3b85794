from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from .models import UserRole

# roles a user can hold without going through the admin bootstrap
AssignableRole = Literal["employee", "manager"]

class UserSchema(BaseModel):
    id: int
    username: str
    email: EmailStr
    name: str
    title: Optional[str] = None
    department: Optional[str] = None
    manager_id: Optional[int] = None
    role: UserRole
    model_config = ConfigDict(from_attributes=True)

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=32)
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    title: Optional[str] = None
    department: Optional[str] = None
    manager_id: Optional[int] = None
    role: AssignableRole = "employee"
    model_config = ConfigDict(extra="forbid")

# attribute edit, admin only
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    title: Optional[str] = None
    department: Optional[str] = None
    model_config = ConfigDict(extra="forbid")

class RoleUpdate(BaseModel):
    role: AssignableRole
    model_config = ConfigDict(extra="forbid")

class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)
    model_config = ConfigDict(extra="forbid")

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
    model_config = ConfigDict(extra="forbid")
