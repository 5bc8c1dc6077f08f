from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ExpectedIncomeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    amount: int = Field(..., ge=0)
    frequency: str = Field(..., description="weekly|biweekly|monthly|custom")
    next_date: date


class ExpectedIncomeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    amount: int | None = Field(default=None, ge=0)
    frequency: str | None = None
    next_date: date | None = None
    is_active: bool | None = None


class MarkIncomeReceived(BaseModel):
    received_date: date
    actual_amount: int | None = Field(default=None, ge=0)


class ExpectedIncomeRead(BaseModel):
    id: UUID
    budget_id: UUID
    name: str
    amount: int
    frequency: str
    next_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
