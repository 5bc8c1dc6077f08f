from __future__ import annotations

import logging
from datetime import date, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import ensure_same_budget, envelope, get_current_member, require_write
from app.db.session import get_db
from app.models.income import ExpectedIncome
from app.models.user import User
from app.schemas.income import ExpectedIncomeCreate, ExpectedIncomeRead, ExpectedIncomeUpdate, MarkIncomeReceived
from app.utils.dates import add_months

router = APIRouter(prefix="/api/expected-income", tags=["income"])
logger = logging.getLogger("app.budgets")

FREQUENCIES = ("weekly", "biweekly", "monthly", "custom")


def next_occurrence(current: date, frequency: str) -> date:
    if frequency == "weekly":
        return current + timedelta(days=7)
    if frequency == "biweekly":
        return current + timedelta(days=14)
    if frequency == "monthly":
        return add_months(current, 1)
    # custom schedules are moved by hand
    return current


def _validate_frequency(frequency: str) -> None:
    if frequency not in FREQUENCIES:
        raise HTTPException(status_code=400, detail="invalid frequency")


def _get_income(db: Session, user: User, income_id: UUID) -> ExpectedIncome:
    row = db.get(ExpectedIncome, income_id)
    if not row:
        raise HTTPException(status_code=404, detail="expected income not found")
    ensure_same_budget(user, row.budget_id)
    return row


@router.get("")
def list_expected_income(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    if user.budget_id is None:
        return envelope([])
    rows = db.execute(
        select(ExpectedIncome)
        .where(ExpectedIncome.budget_id == user.budget_id)
        .order_by(ExpectedIncome.next_date, ExpectedIncome.name)
    ).scalars().all()
    return envelope([ExpectedIncomeRead.model_validate(r) for r in rows])


@router.post("", status_code=201)
def create_expected_income(
    payload: ExpectedIncomeCreate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    budget_id = require_write(user)
    _validate_frequency(payload.frequency)
    row = ExpectedIncome(
        budget_id=budget_id,
        name=payload.name.strip(),
        amount=payload.amount,
        frequency=payload.frequency,
        next_date=payload.next_date,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return envelope(ExpectedIncomeRead.model_validate(row), "Expected income created successfully")


@router.put("/{income_id}")
def update_expected_income(
    income_id: UUID,
    payload: ExpectedIncomeUpdate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    row = _get_income(db, user, income_id)
    require_write(user)
    data = payload.model_dump(exclude_unset=True)
    if data.get("frequency") is not None:
        _validate_frequency(data["frequency"])
    for k, v in data.items():
        if v is None:
            continue
        setattr(row, k, v.strip() if k == "name" else v)
    db.commit()
    db.refresh(row)
    return envelope(ExpectedIncomeRead.model_validate(row), "Expected income updated successfully")


@router.delete("/{income_id}")
def delete_expected_income(
    income_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)
) -> dict:
    row = _get_income(db, user, income_id)
    require_write(user)
    db.delete(row)
    db.commit()
    return envelope(message="Expected income deleted successfully")


@router.post("/{income_id}/received")
def mark_income_received(
    income_id: UUID,
    payload: MarkIncomeReceived,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    row = _get_income(db, user, income_id)
    require_write(user)
    previous = row.next_date
    row.next_date = next_occurrence(previous, row.frequency)
    db.commit()
    db.refresh(row)
    logger.info(
        "income_received id=%s received_date=%s actual_amount=%s next_date=%s->%s",
        row.id,
        payload.received_date.isoformat(),
        payload.actual_amount if payload.actual_amount is not None else row.amount,
        previous.isoformat(),
        row.next_date.isoformat(),
    )
    return envelope(ExpectedIncomeRead.model_validate(row), "Income marked as received")
