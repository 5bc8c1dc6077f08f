from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import envelope, get_current_member
from app.core.config import settings
from app.db.session import get_db
from app.models.budget import Budget
from app.models.invitation import BudgetInvitation
from app.models.user import User
from app.schemas.invitation import InvitationCreate, InvitationRead
from app.services.household import ADMIN, INVITABLE_ROLES, OWNER, READ_WRITE, can_write

router = APIRouter(prefix="/api", tags=["invitations"])
logger = logging.getLogger("app.invitations")

PENDING = "pending"
ACCEPTED = "accepted"
DECLINED = "declined"
EXPIRED = "expired"


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _member_count(db: Session, budget_id: UUID) -> int:
    return db.execute(select(func.count()).select_from(User).where(User.budget_id == budget_id)).scalar_one()


def _get_pending(db: Session, token: str) -> BudgetInvitation:
    inv = db.execute(select(BudgetInvitation).where(BudgetInvitation.token == token)).scalars().one_or_none()
    if not inv:
        raise HTTPException(status_code=404, detail="invitation not found")
    if inv.status != PENDING:
        raise HTTPException(status_code=400, detail="invitation has already been processed")
    return inv


@router.post("/budgets/{budget_id}/invite", status_code=201)
def invite_member(
    budget_id: UUID,
    payload: InvitationCreate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    email = payload.invitee_email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="invitee_email is required")
    role = payload.invited_role.strip() or READ_WRITE
    if role not in INVITABLE_ROLES:
        raise HTTPException(status_code=400, detail="invalid invited_role")

    if user.budget_id != budget_id or not can_write(user):
        raise HTTPException(status_code=403, detail="you do not have permission to invite members to this budget")
    if role == ADMIN and user.budget_role not in (OWNER, ADMIN):
        raise HTTPException(status_code=403, detail="only owners and admins can invite admins")

    budget = db.get(Budget, budget_id)
    if not budget:
        raise HTTPException(status_code=404, detail="budget not found")

    existing_member = db.execute(
        select(User.id).where(func.lower(User.email) == email, User.budget_id == budget_id)
    ).first()
    if existing_member:
        raise HTTPException(status_code=409, detail="user is already a member of this budget")
    now = datetime.now(timezone.utc)
    pending = db.execute(
        select(BudgetInvitation).where(
            BudgetInvitation.budget_id == budget_id,
            BudgetInvitation.invitee_email == email,
            BudgetInvitation.status == PENDING,
        )
    ).scalars().all()
    if any(_utc(p.expires_at) > now for p in pending):
        raise HTTPException(status_code=409, detail="an invitation is already pending for this email")
    if _member_count(db, budget_id) >= budget.max_members:
        raise HTTPException(status_code=409, detail="budget has reached its member limit")

    inv = BudgetInvitation(
        budget_id=budget_id,
        inviter_id=user.id,
        invitee_email=email,
        invited_role=role,
        token=secrets.token_hex(32),
        status=PENDING,
        expires_at=now + timedelta(days=settings.invitation_ttl_days),
    )
    db.add(inv)
    db.commit()
    db.refresh(inv)
    logger.info("invitation_created id=%s budget_id=%s role=%s inviter=%s", inv.id, budget_id, role, user.id)
    return envelope(InvitationRead.model_validate(inv), "Invitation sent successfully")


@router.get("/budget-invitations")
def list_my_invitations(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    now = datetime.now(timezone.utc)
    rows = db.execute(
        select(BudgetInvitation)
        .where(BudgetInvitation.invitee_email == user.email.lower(), BudgetInvitation.status == PENDING)
        .order_by(BudgetInvitation.created_at.desc())
    ).scalars().all()
    return envelope([InvitationRead.model_validate(r) for r in rows if _utc(r.expires_at) > now])


@router.post("/budget-invitations/{token}/accept")
def accept_invitation(token: str, user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    inv = _get_pending(db, token)
    now = datetime.now(timezone.utc)
    if _utc(inv.expires_at) <= now:
        inv.status = EXPIRED
        db.commit()
        logger.info("invitation_expired id=%s", inv.id)
        raise HTTPException(status_code=400, detail="invitation has expired")
    if inv.invitee_email != user.email.lower():
        raise HTTPException(status_code=403, detail="this invitation was sent to a different email")
    if user.budget_id == inv.budget_id:
        raise HTTPException(status_code=409, detail="user is already a member of this budget")
    budget = db.get(Budget, inv.budget_id)
    if not budget or not budget.is_active:
        raise HTTPException(status_code=404, detail="budget not found")
    if _member_count(db, budget.id) >= budget.max_members:
        raise HTTPException(status_code=409, detail="budget has reached its member limit")

    previous = user.budget_id
    user.budget_id = inv.budget_id
    user.budget_role = inv.invited_role
    user.joined_budget_at = now
    inv.status = ACCEPTED
    inv.accepted_at = now
    db.commit()
    db.refresh(user)
    logger.info(
        "invitation_accepted id=%s user_id=%s budget_id=%s previous_budget_id=%s role=%s",
        inv.id, user.id, inv.budget_id, previous, inv.invited_role,
    )
    return envelope(InvitationRead.model_validate(inv), "Invitation accepted successfully")


@router.post("/budget-invitations/{token}/decline")
def decline_invitation(token: str, user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    inv = _get_pending(db, token)
    if inv.invitee_email != user.email.lower():
        raise HTTPException(status_code=403, detail="this invitation was sent to a different email")
    inv.status = DECLINED
    db.commit()
    logger.info("invitation_declined id=%s user_id=%s", inv.id, user.id)
    return envelope(message="Invitation declined")
