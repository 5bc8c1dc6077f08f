from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class SplitInput(BaseModel):
    user_id: UUID
    allocation_percentage: Decimal | None = Field(default=None, ge=0, le=100, decimal_places=2)
    allocation_amount: int | None = Field(default=None, ge=0, description="Monthly cents")


class CategoryBudgetCreate(BaseModel):
    category_id: UUID
    amount: int = Field(..., ge=0, description="Monthly amount in cents")
    allocation_type: str | None = Field(default=None, description="pooled|split")
    splits: list[SplitInput] | None = None


class CategoryBudgetUpdate(BaseModel):
    amount: int | None = Field(default=None, ge=0)
    allocation_type: str | None = None
    splits: list[SplitInput] | None = None


class CategoryBudgetRead(BaseModel):
    id: UUID
    budget_id: UUID
    category_id: UUID
    amount: int
    allocation_type: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CategoryBudgetSplitRead(BaseModel):
    id: UUID
    category_budget_id: UUID
    user_id: UUID
    allocation_percentage: float | None
    allocation_amount: int | None

    model_config = {"from_attributes": True}


class CategoryBudgetSplitsUpdate(BaseModel):
    splits: list[SplitInput] = Field(default_factory=list)
