# app/api/v1/routes/incomes.py
import uuid
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import income as crud_income
from app.crud.balance import recalculate_balances_from
from app.models.income import INCOME_CATEGORIES
from app.schemas.income import (
    IncomeCreate, IncomeUpdate, IncomeRead, IncomeWithAllocation, IncomeCategoryList,
)
from app.utils.allocation import allocate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/incomes", tags=["incomes"])


def with_allocation(income) -> IncomeWithAllocation:
    return IncomeWithAllocation(**IncomeRead.model_validate(income).model_dump(), allocation=allocate(income.amount))


@router.get("/", response_model=List[IncomeRead])
async def list_incomes(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_income.get_incomes_for_user(user.id, db)


@router.get("/categories", response_model=IncomeCategoryList)
async def list_income_categories():
    return {"categories": [{k: c[k] for k in ("id", "name", "icon")} for c in INCOME_CATEGORIES]}


@router.get("/month/{year}/{month}", response_model=List[IncomeRead])
async def list_incomes_for_month(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_income.get_incomes_by_month(user.id, year, month, db)


@router.post("/", response_model=IncomeWithAllocation, status_code=status.HTTP_201_CREATED)
async def create_income(
    income_in: IncomeCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Record an income and return it with its 40/30/30 split. The month's
    running balance and every later one are rebuilt.
    """
    income = await crud_income.create_income_for_user(user.id, income_in, db)
    await recalculate_balances_from(user.id, income.date, db)
    logger.info(f"💰 Income {income.amount} recorded for user {user.id}")
    return with_allocation(income)


@router.get("/{income_id}", response_model=IncomeWithAllocation)
async def get_income(
    income_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    income = await crud_income.get_income_by_id(income_id, user.id, db)
    if not income:
        raise HTTPException(status_code=404, detail="Income not found")
    return with_allocation(income)


@router.patch("/{income_id}", response_model=IncomeRead)
async def update_income(
    income_id: uuid.UUID,
    income_in: IncomeUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    income = await crud_income.get_income_by_id(income_id, user.id, db)
    if not income:
        raise HTTPException(status_code=404, detail="Income not found")

    old_amount, old_date = income.amount, income.date
    income = await crud_income.update_income(income, income_in, db)
    if income.amount != old_amount or income.date != old_date:
        await recalculate_balances_from(user.id, min(old_date, income.date), db)
    return income


@router.delete("/{income_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_income(
    income_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    income = await crud_income.get_income_by_id(income_id, user.id, db)
    if not income:
        raise HTTPException(status_code=404, detail="Income not found")
    when = income.date
    await crud_income.delete_income(income, db)
    await recalculate_balances_from(user.id, when, db)
