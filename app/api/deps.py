"""Request-scoped helpers shared by the routers: the calling member, access checks, the response envelope."""
from __future__ import annotations

import uuid
from typing import Any

from fastapi import Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.auth import TokenUser, get_current_user
from app.db.session import get_db
from app.models.user import User
from app.services.household import can_write, provision_user


def get_current_member(current: TokenUser = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
    user = db.get(User, current.user_id)
    if user:
        return user
    if not current.email:
        raise HTTPException(status_code=401, detail="unauthorized")
    return provision_user(db, current.user_id, current.email)


def require_budget(user: User) -> uuid.UUID:
    if user.budget_id is None:
        raise HTTPException(status_code=400, detail="user does not belong to a budget")
    return user.budget_id


def require_write(user: User) -> uuid.UUID:
    budget_id = require_budget(user)
    if not can_write(user):
        raise HTTPException(status_code=403, detail="read-only members cannot modify this budget")
    return budget_id


def ensure_same_budget(user: User, budget_id: uuid.UUID) -> None:
    if user.budget_id is None or user.budget_id != budget_id:
        raise HTTPException(status_code=403, detail="access denied")


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


def envelope(data: Any = None, message: str | None = None) -> dict:
    out: dict[str, Any] = {}
    if data is not None:
        out["data"] = _dump(data)
    if message:
        out["message"] = message
    return out
