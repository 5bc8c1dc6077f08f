from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_member
from app.db.session import get_db
from app.models.user import User
from app.services.spending import SpendingService

router = APIRouter(prefix="/api/spending", tags=["spending"])


@router.get("/available")
def spending_available(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    result = SpendingService(db).available(user)
    # split-only fields are omitted rather than null
    return {"data": result.model_dump(mode="json", exclude_none=True)}
