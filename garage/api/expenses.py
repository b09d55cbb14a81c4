"""Expense ledger API."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.db.engine import get_db
from garage.dependencies import require_permission
from garage.errors import ValidationError
from garage.models import Expense
from garage.schemas import ExpenseCreate, ExpenseRead, ExpenseUpdate
from garage.services import file_store
from garage.services.auth import AuthContext
from garage.services.invoicing import to_money

router = APIRouter(prefix="/api/expenses", tags=["expenses"])


def _amount(value):
    amount = to_money(value)
    if amount <= 0:
        raise ValidationError("Expense amount must be positive")
    return amount


async def _receipt(location):
    if location:
        await file_store.confirm_uploads([location], "receipt")
    return location


@router.get("", response_model=list[ExpenseRead])
async def list_expenses(
    branch_id: str | None = None,
    category: str | None = None,
    start: date | None = None,
    end: date | None = None,
    auth: AuthContext = Depends(require_permission("expenses.view")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_expenses(db, branch_id=branch_id, category=category, start=start, end=end)


@router.post("", response_model=ExpenseRead, status_code=201)
async def create_expense(
    body: ExpenseCreate,
    auth: AuthContext = Depends(require_permission("expenses.manage")),
    db: AsyncSession = Depends(get_db),
):
    category = body.category.strip().lower()
    if not category:
        raise ValidationError("Expense category is required")
    return await crud.create_expense(
        db,
        branch_id=body.branch_id or auth.branch_id,
        category=category,
        description=body.description,
        amount=_amount(body.amount),
        incurred_on=body.incurred_on,
        receipt_location=await _receipt(body.receipt_location),
        recorded_by=auth.user_id,
    )


@router.put("/{expense_id}", response_model=ExpenseRead)
async def update_expense(
    expense_id: str, body: ExpenseUpdate,
    auth: AuthContext = Depends(require_permission("expenses.manage")),
    db: AsyncSession = Depends(get_db),
):
    expense = await crud.get_or_404(db, Expense, expense_id, "Expense")
    updates = body.model_dump()
    if updates.get("amount") is not None:
        updates["amount"] = _amount(updates["amount"])
    if updates.get("receipt_location"):
        updates["receipt_location"] = await _receipt(updates["receipt_location"])
    return await crud.update_expense(db, expense, **updates)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: str,
    auth: AuthContext = Depends(require_permission("expenses.manage")),
    db: AsyncSession = Depends(get_db),
):
    expense = await crud.get_or_404(db, Expense, expense_id, "Expense")
    await crud.delete_expense(db, expense)
    return {"ok": True, "id": expense_id}
