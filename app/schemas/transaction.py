from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TransactionCreate(BaseModel):
    amount: int = Field(..., description="Cents; negative for expenses, positive for income")
    description: str = ""
    category_id: UUID
    date: dt.date
    account_id: Optional[UUID] = None


class TransactionUpdate(BaseModel):
    amount: Optional[int] = None
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    date: Optional[dt.date] = None
    account_id: Optional[UUID] = None


class TransactionRead(BaseModel):
    id: UUID
    user_id: UUID
    budget_id: UUID
    account_id: Optional[UUID] = None
    amount: int
    description: str
    category_id: UUID
    date: dt.date
    merchant_name: str
    detected_pattern_id: Optional[UUID] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}


class TransactionPage(BaseModel):
    data: list[TransactionRead]
    page: int
    per_page: int
    total: int
    total_pages: int


# ----- Import (bulk) -----
class ImportTransaction(BaseModel):
    date: dt.date
    description: str = ""
    amount: int | str = Field(..., description="Cents as an integer, or a display amount such as '-$12.50'")
    category_id: UUID
    account_id: Optional[UUID] = None


class ImportTransactionsRequest(BaseModel):
    transactions: list[ImportTransaction] = Field(..., min_length=1)


class ImportTransactionsResponse(BaseModel):
    imported: int
    ids: list[UUID] = Field(..., description="Created transaction IDs")
