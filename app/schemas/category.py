from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field("", max_length=255)
    color: str = Field("", max_length=50)
    icon: str = Field("", max_length=50)


class CategoryRead(BaseModel):
    id: UUID
    budget_id: UUID | None
    name: str
    color: str
    icon: str
    is_system: bool
    created_at: datetime

    model_config = {"from_attributes": True}
