from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class SpendingPeriod(BaseModel):
    type: str
    start_date: date
    end_date: date
    days_remaining: int


class CategorySpending(BaseModel):
    category_id: str
    category_name: str
    category_icon: str
    category_color: str
    budgeted: int  # prorated to the view period
    spent: int
    available: int
    percentage_used: float
    status: str  # on_track | warning | over_budget
    is_split: bool
    # only present when the budget is split and the caller holds a share
    my_allocation: int | None = None
    my_available: int | None = None


class SpendingSummary(BaseModel):
    total_available: int
    total_budgeted: int
    total_spent: int
    percentage_used: float


class SpendingAvailableResponse(BaseModel):
    period: SpendingPeriod
    summary: SpendingSummary
    categories: list[CategorySpending]
