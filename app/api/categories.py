from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import envelope, get_current_member, require_write
from app.db.session import get_db
from app.models.category import Category
from app.models.user import User
from app.schemas.category import CategoryCreate, CategoryRead

router = APIRouter(prefix="/api/categories", tags=["categories"])


def visible_category(db: Session, user: User, category_id) -> Category | None:
    """System categories plus the ones created inside the member's budget."""
    cat = db.get(Category, category_id)
    if not cat:
        return None
    if cat.budget_id is None and cat.is_system:
        return cat
    if user.budget_id is not None and cat.budget_id == user.budget_id:
        return cat
    return None


@router.get("")
def list_categories(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    cond = Category.budget_id.is_(None) & Category.is_system.is_(True)
    if user.budget_id is not None:
        cond = or_(cond, Category.budget_id == user.budget_id)
    rows = db.execute(select(Category).where(cond).order_by(Category.name)).scalars().all()
    return envelope([CategoryRead.model_validate(r) for r in rows])


@router.post("", status_code=201)
def create_category(
    payload: CategoryCreate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="category name is required")
    if not payload.icon.strip():
        raise HTTPException(status_code=400, detail="category icon is required")
    if not payload.color.strip():
        raise HTTPException(status_code=400, detail="category color is required")
    budget_id = require_write(user)
    row = Category(budget_id=budget_id, name=name, color=payload.color.strip(), icon=payload.icon.strip(), is_system=False)
    db.add(row)
    db.commit()
    db.refresh(row)
    return envelope(CategoryRead.model_validate(row), "Category created successfully")
