from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class CategoryBudget(Base):
    """Monthly budget for one category. Amount is always the monthly figure in cents."""

    __tablename__ = "category_budgets"
    __table_args__ = (UniqueConstraint("budget_id", "category_id", name="uq_category_budget_budget_category"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    budget_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("budgets.id", ondelete="CASCADE"), index=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("categories.id"), index=True)
    amount: Mapped[int] = mapped_column(BigInteger, default=0)
    allocation_type: Mapped[str] = mapped_column(String(20), default="pooled")  # pooled, split
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    category: Mapped["Category"] = relationship("Category")
    splits: Mapped[list["CategoryBudgetSplit"]] = relationship(
        "CategoryBudgetSplit", back_populates="category_budget", cascade="all, delete-orphan"
    )


class CategoryBudgetSplit(Base):
    """One member's share of a split category budget: a fixed monthly amount or a percentage."""

    __tablename__ = "category_budget_splits"
    __table_args__ = (UniqueConstraint("category_budget_id", "user_id", name="uq_category_budget_split_user"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_budget_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("category_budgets.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True)
    allocation_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    allocation_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)  # cents
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    category_budget: Mapped["CategoryBudget"] = relationship("CategoryBudget", back_populates="splits")
