# app/api/v1/routes/expenses.py
import uuid
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import expense as crud_expense
from app.crud.balance import recalculate_balances_from
from app.models.expense import EXPENSE_CATEGORIES, normalize_expense_category
from app.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseRead, ExpenseCategory
from app.utils.guardrails import evaluate_guardrails

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


async def record_expense(user: User, expense_in: ExpenseCreate, db: AsyncSession):
    """Create an expense, rebuild the month balances and check spending limits."""
    expense = await crud_expense.create_expense_for_user(user.id, expense_in, db)
    await recalculate_balances_from(user.id, expense.date, db)
    await evaluate_guardrails(db, user.id, expense.category)
    logger.info(f"🧾 Expense {expense.amount} ({expense.category}) recorded for user {user.id}")
    return expense


@router.get("/", response_model=List[ExpenseRead])
async def list_expenses(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_expense.get_expenses_for_user(user.id, db)


@router.get("/categories", response_model=List[ExpenseCategory])
async def list_expense_categories():
    return [{"id": c["id"], "name": c["name"]} for c in EXPENSE_CATEGORIES]


@router.get("/month/{year}/{month}", response_model=List[ExpenseRead])
async def list_expenses_for_month(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_expense.get_expenses_by_month(user.id, year, month, db)


@router.get("/category/{category}", response_model=List[ExpenseRead])
async def list_expenses_for_category(
    category: str,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_expense.get_expenses_by_category(user.id, normalize_expense_category(category), db)


@router.post("/", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_in: ExpenseCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await record_expense(user, expense_in, db)


@router.get("/{expense_id}", response_model=ExpenseRead)
async def get_expense(
    expense_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    expense = await crud_expense.get_expense_by_id(expense_id, user.id, db)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.patch("/{expense_id}", response_model=ExpenseRead)
async def update_expense(
    expense_id: uuid.UUID,
    expense_in: ExpenseUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    expense = await crud_expense.get_expense_by_id(expense_id, user.id, db)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    old_amount, old_date, old_category = expense.amount, expense.date, expense.category
    expense = await crud_expense.update_expense(expense, expense_in, db)
    if expense.amount != old_amount or expense.date != old_date:
        await recalculate_balances_from(user.id, min(old_date, expense.date), db)
    if (expense.amount, expense.date, expense.category) != (old_amount, old_date, old_category):
        await evaluate_guardrails(db, user.id, expense.category)
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    expense = await crud_expense.get_expense_by_id(expense_id, user.id, db)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    when = expense.date
    await crud_expense.delete_expense(expense, db)
    await recalculate_balances_from(user.id, when, db)
