from __future__ import annotations

import csv
import io
import logging
import math
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from openpyxl import Workbook
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.api.categories import visible_category
from app.api.deps import ensure_same_budget, envelope, get_current_member, require_budget, require_write
from app.db.session import get_db
from app.models.account import Account
from app.models.transaction import Transaction
from app.models.user import User
from app.schemas.transaction import (
    ImportTransactionsRequest,
    ImportTransactionsResponse,
    TransactionCreate,
    TransactionPage,
    TransactionRead,
    TransactionUpdate,
)
from app.utils.money import format_currency, parse_currency

router = APIRouter(prefix="/api/transactions", tags=["transactions"])
logger = logging.getLogger("app.budgets")

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 200


def extract_merchant_name(description: str) -> str:
    """First word of the description, upper-cased ('starbucks coffee' -> 'STARBUCKS')."""
    words = (description or "").split()
    return words[0].upper() if words else ""


def _check_category(db: Session, user: User, category_id: UUID) -> None:
    if visible_category(db, user, category_id) is None:
        raise HTTPException(status_code=400, detail="invalid category_id")


def _check_account(db: Session, user: User, account_id: UUID | None) -> None:
    if account_id is None:
        return
    acc = db.get(Account, account_id)
    if not acc or acc.budget_id != user.budget_id:
        raise HTTPException(status_code=400, detail="invalid account_id")


def _get_transaction(db: Session, user: User, transaction_id: UUID) -> Transaction:
    tx = db.get(Transaction, transaction_id)
    if not tx:
        raise HTTPException(status_code=404, detail="transaction not found")
    ensure_same_budget(user, tx.budget_id)
    return tx


@router.get("")
def list_transactions(
    category_id: UUID | None = Query(None),
    user_id: UUID | None = Query(None),
    account_id: UUID | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    if user.budget_id is None:
        return envelope(TransactionPage(data=[], page=page, per_page=per_page, total=0, total_pages=0))

    conds = [Transaction.budget_id == user.budget_id]
    if category_id:
        conds.append(Transaction.category_id == category_id)
    if user_id:
        conds.append(Transaction.user_id == user_id)
    if account_id:
        conds.append(Transaction.account_id == account_id)
    if start_date:
        conds.append(Transaction.date >= start_date)
    if end_date:
        conds.append(Transaction.date <= end_date)

    total = db.execute(select(func.count()).select_from(Transaction).where(*conds)).scalar_one()
    rows = db.execute(
        select(Transaction)
        .where(*conds)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).scalars().all()
    return envelope(
        TransactionPage(
            data=[TransactionRead.model_validate(r) for r in rows],
            page=page,
            per_page=per_page,
            total=total,
            total_pages=math.ceil(total / per_page) if total else 0,
        )
    )


def _export_rows(db: Session, budget_id: UUID) -> list[list]:
    txns = db.execute(
        select(Transaction)
        .where(Transaction.budget_id == budget_id)
        .options(selectinload(Transaction.category), selectinload(Transaction.account))
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
    ).scalars().all()
    rows: list[list] = []
    for t in txns:
        currency = t.account.currency if t.account else "USD"
        rows.append([
            str(t.id),
            t.date.isoformat(),
            t.description or "",
            t.merchant_name or "",
            t.category.name if t.category else "",
            t.account.name if t.account else "",
            t.amount,
            format_currency(t.amount, currency),
        ])
    return rows


_EXPORT_HEADER = ["transaction_id", "date", "description", "merchant", "category", "account", "amount_cents", "amount"]


@router.get("/export.csv")
def export_transactions_csv(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> Response:
    budget_id = require_budget(user)
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(_EXPORT_HEADER)
    for r in _export_rows(db, budget_id):
        w.writerow(r)
    headers = {"Content-Disposition": f'attachment; filename="transactions-{date.today().isoformat()}.csv"'}
    return Response(content=out.getvalue().encode("utf-8"), media_type="text/csv", headers=headers)


@router.get("/export.xlsx")
def export_transactions_xlsx(user: User = Depends(get_current_member), db: Session = Depends(get_db)) -> Response:
    budget_id = require_budget(user)
    wb = Workbook()
    ws = wb.active
    ws.title = "Transactions"
    ws.append(_EXPORT_HEADER)
    for r in _export_rows(db, budget_id):
        ws.append(r)
    buf = io.BytesIO()
    wb.save(buf)
    headers = {"Content-Disposition": f'attachment; filename="transactions-{date.today().isoformat()}.xlsx"'}
    return Response(
        content=buf.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )


@router.post("/import", status_code=201)
def import_transactions(
    payload: ImportTransactionsRequest,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    """Bulk insert. Amounts may be cents or display strings ('-$12.50'); the whole batch fails on a bad row."""
    budget_id = require_write(user)
    created: list[Transaction] = []
    for idx, item in enumerate(payload.transactions):
        if visible_category(db, user, item.category_id) is None:
            raise HTTPException(status_code=400, detail=f"row {idx + 1}: invalid category_id")
        _check_account(db, user, item.account_id)
        amount = parse_currency(item.amount) if isinstance(item.amount, str) else int(item.amount)
        tx = Transaction(
            user_id=user.id,
            budget_id=budget_id,
            account_id=item.account_id,
            amount=amount,
            description=item.description,
            merchant_name=extract_merchant_name(item.description),
            category_id=item.category_id,
            date=item.date,
        )
        db.add(tx)
        created.append(tx)
    db.commit()
    logger.info("transactions_imported budget_id=%s user_id=%s count=%s", budget_id, user.id, len(created))
    return envelope(
        ImportTransactionsResponse(imported=len(created), ids=[t.id for t in created]),
        "Transactions imported successfully",
    )


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)
) -> dict:
    return envelope(TransactionRead.model_validate(_get_transaction(db, user, transaction_id)))


@router.post("", status_code=201)
def create_transaction(
    payload: TransactionCreate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    budget_id = require_write(user)
    _check_category(db, user, payload.category_id)
    _check_account(db, user, payload.account_id)
    tx = Transaction(
        user_id=user.id,
        budget_id=budget_id,
        account_id=payload.account_id,
        amount=payload.amount,
        description=payload.description,
        merchant_name=extract_merchant_name(payload.description),
        category_id=payload.category_id,
        date=payload.date,
    )
    db.add(tx)
    db.commit()
    db.refresh(tx)
    return envelope(TransactionRead.model_validate(tx), "Transaction created successfully")


@router.put("/{transaction_id}")
def update_transaction(
    transaction_id: UUID,
    payload: TransactionUpdate,
    user: User = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> dict:
    tx = _get_transaction(db, user, transaction_id)
    require_write(user)
    if tx.user_id != user.id:
        raise HTTPException(status_code=403, detail="can only update your own transactions")

    data = payload.model_dump(exclude_unset=True)
    if data.get("category_id") is not None:
        _check_category(db, user, data["category_id"])
    if "account_id" in data:
        _check_account(db, user, data["account_id"])
        tx.account_id = data["account_id"]
    if data.get("amount") is not None:
        tx.amount = data["amount"]
    if data.get("description") is not None:
        tx.description = data["description"]
        tx.merchant_name = extract_merchant_name(data["description"])
    if data.get("category_id") is not None:
        tx.category_id = data["category_id"]
    if data.get("date") is not None:
        tx.date = data["date"]
    db.commit()
    db.refresh(tx)
    return envelope(TransactionRead.model_validate(tx), "Transaction updated successfully")


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: UUID, user: User = Depends(get_current_member), db: Session = Depends(get_db)
) -> dict:
    tx = _get_transaction(db, user, transaction_id)
    require_write(user)
    if tx.user_id != user.id:
        raise HTTPException(status_code=403, detail="can only delete your own transactions")
    db.delete(tx)
    db.commit()
    return envelope(message="Transaction deleted successfully")
