# app/api/v1/routes/dashboard.py
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.routes.allocation import month_allocation
from app.api.v1.routes.balances import resolve_month_balance
from app.api.v1.routes.goals import progress_report
from app.core.auth import User
from app.core.database import get_async_session
from app.crud.expense import get_expenses_by_month, get_expenses_for_user, get_expenses_between
from app.crud.goal import get_active_goals
from app.crud.income import get_incomes_for_user, get_incomes_between
from app.crud.notification import get_unread_count
from app.schemas.dashboard import DashboardSummary
from app.schemas.types import to_naive_utc
from app.utils.allocation import top_categories
from app.utils.export import (
    iter_csv, transaction_rows, summary_rows,
    INCOME_COLUMNS, EXPENSE_COLUMNS, TRANSACTION_COLUMNS, SUMMARY_COLUMNS,
)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/summary", response_model=DashboardSummary)
async def get_dashboard_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Everything the home screen shows for one month (default: current):
    - income, expenses and net
    - the 40/30/30 split and how the needs bucket is holding up
    - biggest expense categories
    - progress of goals still open
    - running balance and unread notifications
    """
    now = datetime.utcnow()
    year, month = year or now.year, month or now.month

    allocation = await month_allocation(user.id, year, month, db)
    expenses = await get_expenses_by_month(user.id, year, month, db)
    balance = await resolve_month_balance(user.id, year, month, db)
    goals = await get_active_goals(user.id, db)

    return DashboardSummary(
        year=year,
        month=month,
        income_total=allocation.income_total,
        expense_total=allocation.needs_spent,
        net=round(allocation.income_total - allocation.needs_spent, 2),
        allocation=allocation.allocation,
        budget_status=allocation.status,
        top_expense_categories=top_categories((e.category, e.amount) for e in expenses),
        active_goals=[progress_report(g) for g in goals],
        current_balance=balance.current_balance,
        unread_notifications=await get_unread_count(db, user.id),
    )


def _csv_response(rows, columns, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter_csv(rows, columns),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _records_between(user: User, db: AsyncSession, start: Optional[datetime],
                           end: Optional[datetime]) -> Tuple[list, list]:
    """Incomes and expenses from start through the whole day of end; all time when neither is given."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    if start is None and end is None:
        return await get_incomes_for_user(user.id, db), await get_expenses_for_user(user.id, db)

    start = start or datetime(1900, 1, 1)
    if end is None:
        end = datetime(9999, 1, 1)
    else:
        end = datetime(end.year, end.month, end.day) + timedelta(days=1)
    return await get_incomes_between(user.id, start, end, db), await get_expenses_between(user.id, start, end, db)


@router.get("/export/incomes.csv")
async def export_incomes(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return _csv_response(await get_incomes_for_user(user.id, db), INCOME_COLUMNS, "incomes.csv")


@router.get("/export/expenses.csv")
async def export_expenses(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return _csv_response(await get_expenses_for_user(user.id, db), EXPENSE_COLUMNS, "expenses.csv")


@router.get("/export/transactions.csv")
async def export_transactions(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Incomes and expenses in one file, newest first, expenses as negative amounts."""
    incomes, expenses = await _records_between(user, db, start, end)
    return _csv_response(transaction_rows(incomes, expenses), TRANSACTION_COLUMNS, "transactions.csv")


@router.get("/export/summary.csv")
async def export_summary(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    incomes, expenses = await _records_between(user, db, start, end)
    return _csv_response(summary_rows(incomes, expenses), SUMMARY_COLUMNS, "summary.csv")
