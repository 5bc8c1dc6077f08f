from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class User(Base):
    """Budget member. The id is the identity provider's subject (token `sub`)."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    budget_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("budgets.id", ondelete="SET NULL"), nullable=True, index=True
    )
    budget_role: Mapped[str] = mapped_column(String(20), default="read_write")  # owner, admin, read_write, read_only
    view_period: Mapped[str] = mapped_column(String(20), default="monthly")  # weekly, biweekly, monthly
    # day-of-month (1-28) for monthly, day-of-week (0=Sunday) for weekly/biweekly
    period_anchor_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    period_reference_date: Mapped[date] = mapped_column(Date, default=date.today)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False)
    joined_budget_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    budget: Mapped["Budget | None"] = relationship("Budget", back_populates="members")
