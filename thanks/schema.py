from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from core.clock import aware
from .models import ThanksStatus


class ThanksSchema(BaseModel):
    id: int
    from_id: int
    to_id: int
    message: str
    created_at: datetime
    status: ThanksStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    reject_reason: Optional[str] = None
    points: int
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "approved_at")
    @classmethod
    def as_utc(cls, v):
        return aware(v)


# PUBLIC payload, sender comes from the session
class ThanksCreatePayload(BaseModel):
    to_id: int
    message: str = Field(..., min_length=1, max_length=2000)
    model_config = ConfigDict(extra="forbid")


class ThanksDecisionPayload(BaseModel):
    reason: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


# Admin override, bypasses the approval workflow
class ThanksAdminUpdate(BaseModel):
    from_id: Optional[int] = None
    to_id: Optional[int] = None
    message: Optional[str] = Field(None, min_length=1, max_length=2000)
    status: Optional[ThanksStatus] = None
    reject_reason: Optional[str] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_parties(self):
        if self.from_id is not None and self.from_id == self.to_id:
            raise ValueError("from_id and to_id must differ")
        return self


class UserStatsSchema(BaseModel):
    user_id: int
    total_points: int
    received: list[ThanksSchema]
    sent: list[ThanksSchema]
