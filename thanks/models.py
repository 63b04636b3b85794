from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import DateTime, Integer, Text, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

class ThanksStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

class Thanks(Base):
    __tablename__ = "thanks"

    id: Mapped[int] = mapped_column(primary_key=True)

    from_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    to_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    message: Mapped[str] = mapped_column(Text(), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[ThanksStatus] = mapped_column(
        SAEnum(ThanksStatus, name="thanks_status"),
        default=ThanksStatus.pending,
        nullable=False,
    )
    # set together on approve/reject
    approved_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), index=True, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reject_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)

    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # relationships
    sender = relationship("User", foreign_keys=[from_id])
    receiver = relationship("User", foreign_keys=[to_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])

Index("ix_thanks_status_approved_at", Thanks.status, Thanks.approved_at)
