from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import envelope, get_current_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import UserRead, UserSettingsUpdate
from app.services.spending import VIEW_PERIODS, default_anchor, is_valid_anchor, normalize_anchor

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("app.auth")


def user_to_read(user: User) -> UserRead:
    anchor = normalize_anchor(user.view_period, user.period_anchor_day)
    return UserRead(
        id=user.id,
        email=user.email,
        name=user.name,
        budget_id=user.budget_id,
        budget_role=user.budget_role if user.budget_id else None,
        view_period=user.view_period,
        period_start_date=str(anchor),
        period_anchor_day=user.period_anchor_day,
        period_reference_date=user.period_reference_date,
        is_premium=user.is_premium,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("/me")
def get_me(user: User = Depends(get_current_member)) -> dict:
    return envelope(user_to_read(user))


@router.patch("/me")
def update_me(
    payload: UserSettingsUpdate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    view_period = user.view_period
    if payload.view_period is not None:
        if payload.view_period not in VIEW_PERIODS:
            raise HTTPException(status_code=400, detail="invalid view_period")
        view_period = payload.view_period

    anchor = user.period_anchor_day
    if payload.period_start_date is not None:
        try:
            anchor = int(str(payload.period_start_date).strip())
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid period_start_date")
        if not is_valid_anchor(view_period, anchor):
            raise HTTPException(status_code=400, detail="invalid period_start_date")
    elif not is_valid_anchor(view_period, anchor):
        # switching between monthly and weekly-style periods: old anchor means something else now
        anchor = default_anchor(view_period)

    if payload.name is not None:
        user.name = payload.name.strip()
    user.view_period = view_period
    user.period_anchor_day = anchor
    db.commit()
    db.refresh(user)
    logger.info("user_settings_updated user_id=%s view_period=%s anchor=%s", user.id, user.view_period, user.period_anchor_day)
    return envelope(user_to_read(user), "Settings updated successfully")
