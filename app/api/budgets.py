from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.categories import visible_category
from app.api.deps import ensure_same_budget, envelope, get_current_member, require_budget, require_write
from app.db.session import get_db
from app.models.category_budget import CategoryBudget
from app.models.user import User
from app.schemas.category_budget import (
    CategoryBudgetCreate,
    CategoryBudgetRead,
    CategoryBudgetSplitRead,
    CategoryBudgetSplitsUpdate,
    CategoryBudgetUpdate,
    SplitInput,
)
from app.schemas.user import BudgetMemberRead
from app.services.household import budget_members, member_ids
from app.services.splits import ALLOCATION_TYPES, POOLED, SPLIT, SplitValidationError, replace_splits, validate_splits

router = APIRouter(prefix="/api", tags=["budgets"])
logger = logging.getLogger("app.budgets")


def _get_category_budget(db: Session, user: User, category_budget_id: UUID) -> CategoryBudget:
    cb = db.execute(
        select(CategoryBudget)
        .where(CategoryBudget.id == category_budget_id)
        .options(selectinload(CategoryBudget.splits))
    ).scalars().one_or_none()
    if not cb:
        raise HTTPException(status_code=404, detail="category budget not found")
    ensure_same_budget(user, cb.budget_id)
    return cb


def _apply_splits(db: Session, cb: CategoryBudget, splits: list[SplitInput]) -> None:
    try:
        validate_splits(splits, cb.amount, member_ids(db, cb.budget_id))
    except SplitValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    replace_splits(db, cb, splits)


def _splits_read(cb: CategoryBudget) -> list[CategoryBudgetSplitRead]:
    return [CategoryBudgetSplitRead.model_validate(s) for s in cb.splits]


@router.get("/category-budgets")
def list_category_budgets(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    if user.budget_id is None:
        return envelope([])
    rows = db.execute(
        select(CategoryBudget).where(CategoryBudget.budget_id == user.budget_id).order_by(CategoryBudget.created_at)
    ).scalars().all()
    return envelope([CategoryBudgetRead.model_validate(r) for r in rows])


@router.post("/category-budgets", status_code=201)
def create_category_budget(
    payload: CategoryBudgetCreate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    budget_id = require_write(user)
    allocation_type = payload.allocation_type or POOLED
    if allocation_type not in ALLOCATION_TYPES:
        raise HTTPException(status_code=400, detail="invalid allocation_type")
    if visible_category(db, user, payload.category_id) is None:
        raise HTTPException(status_code=400, detail="invalid category_id")
    exists = db.execute(
        select(CategoryBudget.id).where(
            CategoryBudget.budget_id == budget_id,
            CategoryBudget.category_id == payload.category_id,
        )
    ).first()
    if exists:
        raise HTTPException(status_code=409, detail="a budget already exists for this category")

    cb = CategoryBudget(
        budget_id=budget_id,
        category_id=payload.category_id,
        amount=payload.amount,
        allocation_type=allocation_type,
    )
    db.add(cb)
    db.flush()
    if payload.splits:
        _apply_splits(db, cb, payload.splits)
    db.commit()
    db.refresh(cb)
    logger.info(
        "category_budget_created id=%s budget_id=%s category_id=%s amount=%s allocation_type=%s",
        cb.id, budget_id, cb.category_id, cb.amount, cb.allocation_type,
    )
    return envelope(CategoryBudgetRead.model_validate(cb), "Category budget created successfully")


@router.put("/category-budgets/{category_budget_id}")
def update_category_budget(
    category_budget_id: UUID,
    payload: CategoryBudgetUpdate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    cb = _get_category_budget(db, user, category_budget_id)
    require_write(user)
    if payload.allocation_type is not None and payload.allocation_type not in ALLOCATION_TYPES:
        raise HTTPException(status_code=400, detail="invalid allocation_type")
    if payload.amount is not None:
        cb.amount = payload.amount

    if payload.splits is not None:
        _apply_splits(db, cb, payload.splits)
    elif payload.allocation_type == POOLED:
        replace_splits(db, cb, [])
    else:
        if payload.allocation_type == SPLIT:
            cb.allocation_type = SPLIT
        fixed = [s for s in cb.splits if s.allocation_amount is not None]
        # fixed shares must keep adding up when only the amount changes
        if fixed and sum(s.allocation_amount for s in fixed) != cb.amount:
            raise HTTPException(status_code=400, detail="split amounts must add up to the budget amount")
    db.commit()
    db.refresh(cb)
    return envelope(CategoryBudgetRead.model_validate(cb), "Category budget updated successfully")


@router.delete("/category-budgets/{category_budget_id}")
def delete_category_budget(
    category_budget_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)
) -> dict:
    cb = _get_category_budget(db, user, category_budget_id)
    require_write(user)
    db.delete(cb)
    db.commit()
    logger.info("category_budget_deleted id=%s budget_id=%s", category_budget_id, user.budget_id)
    return envelope(message="Category budget deleted successfully")


@router.get("/category-budgets/{category_budget_id}/splits")
def get_category_budget_splits(
    category_budget_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)
) -> dict:
    cb = _get_category_budget(db, user, category_budget_id)
    return envelope(_splits_read(cb))


@router.put("/category-budgets/{category_budget_id}/splits")
def update_category_budget_splits(
    category_budget_id: UUID,
    payload: CategoryBudgetSplitsUpdate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    cb = _get_category_budget(db, user, category_budget_id)
    require_write(user)
    _apply_splits(db, cb, payload.splits)
    db.commit()
    db.refresh(cb)
    return envelope(_splits_read(cb), "Splits updated successfully")


@router.get("/budget/members")
def list_budget_members(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    budget_id = require_budget(user)
    members = [
        BudgetMemberRead(
            user_id=m.id,
            name=m.name,
            email=m.email,
            budget_role=m.budget_role,
            joined_at=m.joined_budget_at,
        )
        for m in budget_members(db, budget_id)
    ]
    return envelope(members)
