from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UserRead(BaseModel):
    id: UUID
    email: str
    name: str
    budget_id: UUID | None
    budget_role: str | None
    view_period: str
    # anchor day rendered as a string, the form the settings screen edits
    period_start_date: str
    period_anchor_day: int | None
    period_reference_date: date
    is_premium: bool
    created_at: datetime
    updated_at: datetime


class UserSettingsUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    view_period: str | None = None
    period_start_date: str | int | None = Field(default=None, description="Anchor day: 1-28 monthly, 0-6 (Sunday=0) weekly/biweekly")


class BudgetMemberRead(BaseModel):
    user_id: UUID
    name: str
    email: str
    budget_role: str
    joined_at: datetime | None
