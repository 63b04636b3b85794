from __future__ import annotations
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ManagerUpdate(BaseModel):
    manager_id: Optional[int] = None
    model_config = ConfigDict(extra="forbid")


# ---------- bulk update ----------
# manager change is a tagged union instead of a sentinel value

class ManagerUnchanged(BaseModel):
    op: Literal["unchanged"] = "unchanged"


class ManagerClear(BaseModel):
    op: Literal["clear"] = "clear"


class ManagerSet(BaseModel):
    op: Literal["set"] = "set"
    manager_id: int


ManagerChange = Annotated[Union[ManagerUnchanged, ManagerClear, ManagerSet], Field(discriminator="op")]


class BulkUpdateRequest(BaseModel):
    user_ids: list[int] = Field(..., min_length=1)
    title: Optional[str] = Field(None, description="Omit to leave unchanged, null to clear")
    department: Optional[str] = Field(None, description="Omit to leave unchanged, null to clear")
    manager: ManagerChange = Field(default_factory=ManagerUnchanged)
    model_config = ConfigDict(extra="forbid")


class BulkUpdateResult(BaseModel):
    updated_ids: list[int]
    excluded_admin_ids: list[int]


# ---------- delete ----------

class DeleteUserResult(BaseModel):
    user_id: int
    orphaned_report_ids: list[int]
    deleted_thanks_count: int


# ---------- import ----------

class ImportRow(BaseModel):
    username: str = Field(..., min_length=1, max_length=32)
    email: EmailStr
    name: str = Field(..., min_length=1)
    title: Optional[str] = None
    department: Optional[str] = None
    manager_id: Optional[int] = None
    role: Literal["employee", "manager"] = "employee"
    model_config = ConfigDict(str_strip_whitespace=True)


class ImportRequest(BaseModel):
    # raw rows; each one is validated on its own so a bad row is skipped, not fatal
    rows: list[Any]
    default_password: str = Field(..., min_length=6)
    model_config = ConfigDict(extra="forbid")


class SkippedRow(BaseModel):
    row: int  # 1-based position in the upload
    username: Optional[str] = None
    reason: str
    error: str


class ImportResult(BaseModel):
    inserted_count: int
    skipped: list[SkippedRow]
