"""Validation and persistence of per-member shares of a category budget."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.category_budget import CategoryBudget, CategoryBudgetSplit
from app.schemas.category_budget import SplitInput

logger = logging.getLogger("app.budgets")

POOLED = "pooled"
SPLIT = "split"
ALLOCATION_TYPES = (POOLED, SPLIT)

_PERCENT_TOLERANCE = Decimal("0.01")


class SplitValidationError(ValueError):
    pass


def validate_splits(splits: Sequence[SplitInput], budget_amount: int, member_ids: Iterable[uuid.UUID]) -> None:
    """
    Raise SplitValidationError unless the splits describe a complete division of
    `budget_amount` among members of the budget. Each split sets exactly one of
    amount/percentage, all splits use the same kind, fixed amounts add up to the
    budget amount and percentages add up to 100.
    """
    if not splits:
        return
    seen: set[uuid.UUID] = set()
    for s in splits:
        if s.user_id in seen:
            raise SplitValidationError("each user can only appear once in splits")
        seen.add(s.user_id)
        if (s.allocation_amount is None) == (s.allocation_percentage is None):
            raise SplitValidationError("each split must set either allocation_amount or allocation_percentage")

    by_amount = [s for s in splits if s.allocation_amount is not None]
    if by_amount and len(by_amount) != len(splits):
        raise SplitValidationError("splits cannot mix fixed amounts and percentages")

    if not seen.issubset(set(member_ids)):
        raise SplitValidationError("all users must belong to the same budget")

    if by_amount:
        total = sum(int(s.allocation_amount or 0) for s in splits)
        if total != budget_amount:
            raise SplitValidationError(
                f"split amounts must add up to the budget amount ({total} != {budget_amount})"
            )
        return
    pct_total = sum((Decimal(s.allocation_percentage or 0) for s in splits), Decimal("0"))
    if abs(pct_total - Decimal("100")) > _PERCENT_TOLERANCE:
        raise SplitValidationError(f"split percentages must add up to 100 (got {pct_total})")


def replace_splits(db: Session, category_budget: CategoryBudget, splits: Sequence[SplitInput]) -> None:
    """Swap the split set in place. An empty set turns the budget back into a pooled one."""
    category_budget.splits.clear()
    # flush the removals first so re-added members don't hit the (category_budget_id, user_id) unique key
    db.flush()
    for s in splits:
        category_budget.splits.append(
            CategoryBudgetSplit(
                user_id=s.user_id,
                allocation_amount=s.allocation_amount,
                allocation_percentage=s.allocation_percentage,
            )
        )
    category_budget.allocation_type = SPLIT if splits else POOLED
    logger.info(
        "category_budget_splits_replaced id=%s splits=%s allocation_type=%s",
        category_budget.id,
        len(splits),
        category_budget.allocation_type,
    )
