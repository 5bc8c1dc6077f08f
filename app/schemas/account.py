from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., description="checking|savings|credit_card|cash|investment|other")
    balance: int = Field(0, description="Balance in cents")
    currency: str | None = Field(default=None, max_length=3)
    notes: str = ""


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: str | None = None
    balance: int | None = None
    currency: str | None = Field(default=None, max_length=3)
    is_active: bool | None = None
    notes: str | None = None


class AccountRead(BaseModel):
    id: UUID
    budget_id: UUID
    name: str
    type: str
    balance: int
    currency: str
    is_active: bool
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
