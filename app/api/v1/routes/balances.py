# app/api/v1/routes/balances.py
from typing import List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import balance as crud_balance
from app.crud.expense import sum_expenses_between
from app.crud.income import sum_incomes_between
from app.schemas.balance import BalanceRead, BalanceUpsert
from app.utils.allocation import compute_month_balance, month_bounds

router = APIRouter(prefix="/balances", tags=["balances"])


async def resolve_month_balance(user_id, year: int, month: int, db: AsyncSession) -> BalanceRead:
    """The stored balance for a month, or one computed from its records."""
    stored = await crud_balance.get_balance(user_id, year, month, db)
    if stored:
        return BalanceRead.model_validate(stored)

    opening = await crud_balance.opening_balance(user_id, year, month, db)

    start, end = month_bounds(year, month)
    income_total = await sum_incomes_between(user_id, start, end, db)
    expense_total = await sum_expenses_between(user_id, start, end, db)

    return BalanceRead(
        year=year,
        month=month,
        beginning_balance=opening,
        current_balance=compute_month_balance(opening, [income_total], [expense_total]),
        stored=False,
    )


@router.get("/", response_model=List[BalanceRead])
async def list_balances(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_balance.get_balances_for_user(user.id, db)


@router.get("/{year}/{month}", response_model=BalanceRead)
async def get_month_balance(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await resolve_month_balance(user.id, year, month, db)


@router.post("/", response_model=BalanceRead)
async def upsert_balance(
    balance_in: BalanceUpsert,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_balance.upsert_balance(user.id, balance_in, db)
