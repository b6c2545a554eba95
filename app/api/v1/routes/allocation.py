# app/api/v1/routes/allocation.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud.expense import sum_expenses_between
from app.crud.income import sum_incomes_between
from app.schemas.allocation import MonthlyAllocation
from app.schemas.income import AllocationSplit
from app.utils.allocation import allocate, month_bounds, monthly_allocation_summary

router = APIRouter(prefix="/allocation", tags=["allocation"])


async def month_allocation(user_id, year: int, month: int, db: AsyncSession) -> MonthlyAllocation:
    start, end = month_bounds(year, month)
    income_total = await sum_incomes_between(user_id, start, end, db)
    expense_total = await sum_expenses_between(user_id, start, end, db)
    return MonthlyAllocation(year=year, month=month, **monthly_allocation_summary(income_total, expense_total))


@router.get("/", response_model=MonthlyAllocation)
async def get_month_allocation(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    The month's income split 40/30/30, with the month's expenses measured
    against the needs bucket. Defaults to the current month.
    """
    now = datetime.utcnow()
    return await month_allocation(user.id, year or now.year, month or now.month, db)


@router.get("/preview", response_model=AllocationSplit)
async def preview_allocation(amount: float = Query(..., ge=0)):
    return allocate(amount)
