"""Users, their household budget and roles inside it."""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.budget import Budget
from app.models.user import User

logger = logging.getLogger("app.auth")

OWNER = "owner"
ADMIN = "admin"
READ_WRITE = "read_write"
READ_ONLY = "read_only"
BUDGET_ROLES = (OWNER, ADMIN, READ_WRITE, READ_ONLY)
INVITABLE_ROLES = (ADMIN, READ_WRITE, READ_ONLY)
WRITE_ROLES = frozenset({OWNER, ADMIN, READ_WRITE})


def can_write(user: User) -> bool:
    return user.budget_id is not None and user.budget_role in WRITE_ROLES


def create_default_budget(db: Session, user: User) -> Budget:
    budget = Budget(
        name=settings.default_budget_name,
        created_by=user.id,
        max_members=settings.default_max_members,
    )
    db.add(budget)
    db.flush()
    user.budget_id = budget.id
    user.budget_role = OWNER
    user.joined_budget_at = datetime.now(timezone.utc)
    return budget


def provision_user(db: Session, user_id: uuid.UUID, email: str) -> User:
    """First API call of a new identity: create the user row and a personal budget they own."""
    user = User(
        id=user_id,
        email=email,
        name="New User",
        view_period="monthly",
        period_reference_date=date.today(),
    )
    db.add(user)
    db.flush()
    budget = create_default_budget(db, user)
    db.commit()
    db.refresh(user)
    logger.info("user_provisioned user_id=%s budget_id=%s", user.id, budget.id)
    return user


def budget_members(db: Session, budget_id: uuid.UUID) -> list[User]:
    return db.execute(
        select(User).where(User.budget_id == budget_id).order_by(User.joined_budget_at, User.created_at)
    ).scalars().all()


def member_ids(db: Session, budget_id: uuid.UUID) -> set[uuid.UUID]:
    return set(db.execute(select(User.id).where(User.budget_id == budget_id)).scalars().all())
