"""
"What Can I Spend?" calculations.

Category budgets are stored as monthly amounts. For display they are prorated
to the member's view period (weekly / biweekly / monthly) and compared with the
expenses recorded inside the current period, whose bounds follow the member's
anchor day.
"""
from __future__ import annotations

import math
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models.category_budget import CategoryBudget
from app.models.transaction import Transaction
from app.models.user import User
from app.schemas.spending import CategorySpending, SpendingAvailableResponse, SpendingPeriod, SpendingSummary
from app.utils.dates import add_months, end_of_day, most_recent_weekday, next_weekday_on_or_after, parse_iso_date
from app.utils.money import round_half_away

DAYS_PER_MONTH = 30.44

WEEKLY = "weekly"
BIWEEKLY = "biweekly"
MONTHLY = "monthly"
VIEW_PERIODS = (WEEKLY, BIWEEKLY, MONTHLY)

_PERIOD_DAYS = {WEEKLY: 7, BIWEEKLY: 14}

ON_TRACK = "on_track"
WARNING = "warning"
OVER_BUDGET = "over_budget"

WARNING_THRESHOLD = 75.0
OVER_BUDGET_THRESHOLD = 100.0

_STATUS_COLORS = {ON_TRACK: "green", WARNING: "yellow", OVER_BUDGET: "red"}

# 1970-01-04 was a Sunday; biweekly windows are phased from here when a member has no reference date.
_BIWEEKLY_EPOCH = date(1970, 1, 4)


def prorate_budget(monthly_amount: int, view_period: str) -> int:
    """
    Scale a monthly amount (cents) to the view period.
    weekly = round(m * 7 / 30.44), biweekly = round(m * 14 / 30.44), monthly = m.
    Unknown periods return the monthly amount unchanged.
    """
    days = _PERIOD_DAYS.get(view_period)
    if days is None:
        return int(monthly_amount)
    return round_half_away(monthly_amount * (days / DAYS_PER_MONTH))


def percentage_used(spent: int, budgeted: int) -> float:
    if budgeted <= 0:
        return 0.0
    return spent / budgeted * 100.0


def classify_status(pct: float) -> str:
    if pct > OVER_BUDGET_THRESHOLD:
        return OVER_BUDGET
    if pct >= WARNING_THRESHOLD:
        return WARNING
    return ON_TRACK


def status_color(pct: float) -> str:
    return _STATUS_COLORS[classify_status(pct)]


def calculate_days_remaining(end_date: str | date, now: datetime | None = None) -> int:
    """Whole days left until `end_date` is over, rounded up; 0 once it has passed."""
    now = now or datetime.now()
    end = end_of_day(parse_iso_date(end_date), tzinfo=now.tzinfo)
    remaining = (end - now).total_seconds() / 86400
    return max(0, math.ceil(remaining))


def is_valid_anchor(view_period: str, anchor_day: int | None) -> bool:
    if anchor_day is None:
        return True
    if view_period in _PERIOD_DAYS:
        return 0 <= anchor_day <= 6
    return 1 <= anchor_day <= 28


def default_anchor(view_period: str) -> int:
    return 0 if view_period in _PERIOD_DAYS else 1


def normalize_anchor(view_period: str, anchor_day: int | None) -> int:
    if anchor_day is None or not is_valid_anchor(view_period, anchor_day):
        return default_anchor(view_period)
    return anchor_day


def period_bounds(
    view_period: str,
    anchor_day: int | None,
    today: date,
    reference_date: date | None = None,
) -> tuple[date, date]:
    anchor = normalize_anchor(view_period, anchor_day)
    if view_period == WEEKLY:
        start = most_recent_weekday(today, anchor)
        return start, start + timedelta(days=6)
    if view_period == BIWEEKLY:
        phase = next_weekday_on_or_after(reference_date or _BIWEEKLY_EPOCH, anchor)
        start = today - timedelta(days=(today - phase).days % 14)
        return start, start + timedelta(days=13)
    # monthly, and the fallback for unknown periods
    start = today.replace(day=anchor)
    if today.day < anchor:
        start = add_months(start, -1)
    return start, add_months(start, 1) - timedelta(days=1)


def calculate_period(
    view_period: str,
    anchor_day: int | None = None,
    *,
    now: datetime | None = None,
    reference_date: date | None = None,
) -> SpendingPeriod:
    now = now or datetime.now()
    start, end = period_bounds(view_period, anchor_day, now.date(), reference_date)
    return SpendingPeriod(
        type=view_period,
        start_date=start,
        end_date=end,
        days_remaining=calculate_days_remaining(end, now),
    )


def split_allocation(
    monthly_amount: int,
    allocation_amount: int | None,
    allocation_percentage: Decimal | float | None,
) -> int:
    """Monthly cents assigned to one member of a split budget."""
    if allocation_amount is not None:
        return int(allocation_amount)
    if allocation_percentage is not None:
        return round_half_away(monthly_amount * float(allocation_percentage) / 100.0)
    return 0


@dataclass
class _Spend:
    total: int = 0
    by_user: dict[uuid.UUID, int] = field(default_factory=lambda: defaultdict(int))

    def add(self, user_id: uuid.UUID, amount: int) -> None:
        self.total += amount
        self.by_user[user_id] += amount


def _spend_by_category(transactions: Iterable[Transaction], start: date, end: date) -> dict[uuid.UUID, _Spend]:
    spend: dict[uuid.UUID, _Spend] = defaultdict(_Spend)
    for tx in transactions:
        if tx.amount >= 0 or not (start <= tx.date <= end):
            continue
        spend[tx.category_id].add(tx.user_id, abs(tx.amount))
    return spend


def build_spending_available(
    period: SpendingPeriod,
    category_budgets: Iterable[CategoryBudget],
    transactions: Iterable[Transaction],
    user_id: uuid.UUID,
) -> SpendingAvailableResponse:
    """Aggregate one period: prorated budget, spend and availability per category, plus totals."""
    view_period = period.type
    spend = _spend_by_category(transactions, period.start_date, period.end_date)
    rows: list[CategorySpending] = []
    total_budgeted = 0
    total_spent = 0
    for cb in category_budgets:
        category = cb.category
        if category is None:
            continue
        budgeted = prorate_budget(cb.amount, view_period)
        cat_spend = spend.get(cb.category_id) or _Spend()
        # status follows the rounded percentage
        pct = round(percentage_used(cat_spend.total, budgeted), 2)
        row = CategorySpending(
            category_id=str(category.id),
            category_name=category.name,
            category_icon=category.icon,
            category_color=category.color,
            budgeted=budgeted,
            spent=cat_spend.total,
            available=budgeted - cat_spend.total,
            percentage_used=pct,
            status=classify_status(pct),
            is_split=cb.allocation_type != "pooled",
        )
        if row.is_split:
            mine = next((s for s in cb.splits if s.user_id == user_id), None)
            if mine is not None:
                allocation = prorate_budget(
                    split_allocation(cb.amount, mine.allocation_amount, mine.allocation_percentage),
                    view_period,
                )
                my_spent = cat_spend.by_user.get(user_id, 0)
                row.my_allocation = allocation
                row.my_available = allocation - my_spent
        rows.append(row)
        total_budgeted += budgeted
        total_spent += cat_spend.total

    rows.sort(key=lambda r: r.category_name.lower())
    return SpendingAvailableResponse(
        period=period,
        summary=SpendingSummary(
            total_available=total_budgeted - total_spent,
            total_budgeted=total_budgeted,
            total_spent=total_spent,
            percentage_used=round(percentage_used(total_spent, total_budgeted), 2),
        ),
        categories=rows,
    )


class SpendingService:
    def __init__(self, db: Session):
        self.db = db

    def available(self, user: User, now: datetime | None = None) -> SpendingAvailableResponse:
        period = calculate_period(
            user.view_period,
            user.period_anchor_day,
            now=now,
            reference_date=user.period_reference_date,
        )
        if user.budget_id is None:
            return build_spending_available(period, [], [], user.id)
        category_budgets = self.db.execute(
            select(CategoryBudget)
            .where(CategoryBudget.budget_id == user.budget_id)
            .options(selectinload(CategoryBudget.category), selectinload(CategoryBudget.splits))
        ).scalars().all()
        transactions = self.db.execute(
            select(Transaction).where(
                Transaction.budget_id == user.budget_id,
                Transaction.date >= period.start_date,
                Transaction.date <= period.end_date,
                Transaction.amount < 0,
            )
        ).scalars().all()
        return build_spending_available(period, category_budgets, transactions, user.id)
