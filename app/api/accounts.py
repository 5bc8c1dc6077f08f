from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import ensure_same_budget, envelope, get_current_member, require_write
from app.db.session import get_db
from app.models.account import Account, AccountType
from app.models.user import User
from app.schemas.account import AccountCreate, AccountRead, AccountUpdate

router = APIRouter(prefix="/api/accounts", tags=["accounts"])

ACCOUNT_TYPES = {t.value for t in AccountType}


def _get_account(db: Session, user: User, account_id: UUID) -> Account:
    acc = db.get(Account, account_id)
    if not acc:
        raise HTTPException(status_code=404, detail="account not found")
    ensure_same_budget(user, acc.budget_id)
    return acc


def _currency(value: str | None) -> str:
    code = (value or "USD").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise HTTPException(status_code=400, detail="invalid currency")
    return code


@router.get("")
def list_accounts(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    if user.budget_id is None:
        return envelope([])
    rows = db.execute(
        select(Account).where(Account.budget_id == user.budget_id).order_by(Account.name)
    ).scalars().all()
    return envelope([AccountRead.model_validate(r) for r in rows])


@router.get("/{account_id}")
def get_account(account_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    return envelope(AccountRead.model_validate(_get_account(db, user, account_id)))


@router.post("", status_code=201)
def create_account(
    payload: AccountCreate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    budget_id = require_write(user)
    if payload.type not in ACCOUNT_TYPES:
        raise HTTPException(status_code=400, detail="invalid account type")
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="account name is required")
    acc = Account(
        budget_id=budget_id,
        name=name,
        type=payload.type,
        balance=payload.balance,
        currency=_currency(payload.currency),
        notes=payload.notes,
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return envelope(AccountRead.model_validate(acc), "Account created successfully")


@router.put("/{account_id}")
def update_account(
    account_id: UUID,
    payload: AccountUpdate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    acc = _get_account(db, user, account_id)
    require_write(user)
    data = payload.model_dump(exclude_unset=True)
    if data.get("type") is not None and data["type"] not in ACCOUNT_TYPES:
        raise HTTPException(status_code=400, detail="invalid account type")
    if data.get("name") is not None:
        data["name"] = data["name"].strip()
        if not data["name"]:
            raise HTTPException(status_code=400, detail="account name is required")
    if "currency" in data:
        data["currency"] = _currency(data["currency"])
    for k, v in data.items():
        if v is None:
            continue
        setattr(acc, k, v)
    db.commit()
    db.refresh(acc)
    return envelope(AccountRead.model_validate(acc), "Account updated successfully")


@router.delete("/{account_id}")
def delete_account(account_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> dict:
    acc = _get_account(db, user, account_id)
    require_write(user)
    db.delete(acc)
    db.commit()
    return envelope(message="Account deleted successfully")
