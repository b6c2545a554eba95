# app/crud/balance.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, or_
from app.models.balance import Balance
from app.schemas.balance import BalanceUpsert
from app.crud.income import sum_incomes_between
from app.crud.expense import sum_expenses_between
from app.utils.allocation import compute_month_balance, month_bounds, next_month
from typing import List, Optional
from datetime import datetime
import uuid

# Lower bound for "everything before this month" sums
HISTORY_START = datetime(1900, 1, 1)


async def get_balances_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Balance]:
    result = await db.execute(
        select(Balance)
        .where(Balance.user_id == user_id)
        .order_by(Balance.year.desc(), Balance.month.desc())
    )
    return result.scalars().all()


async def get_balance(user_id: uuid.UUID, year: int, month: int, db: AsyncSession) -> Optional[Balance]:
    result = await db.execute(
        select(Balance).where(Balance.user_id == user_id, Balance.year == year, Balance.month == month)
    )
    return result.scalar_one_or_none()


async def get_latest_balance_before(user_id: uuid.UUID, year: int, month: int,
                                    db: AsyncSession) -> Optional[Balance]:
    result = await db.execute(
        select(Balance)
        .where(
            Balance.user_id == user_id,
            or_(Balance.year < year, and_(Balance.year == year, Balance.month < month)),
        )
        .order_by(Balance.year.desc(), Balance.month.desc())
        .limit(1)
    )
    return result.scalars().first()


async def get_latest_balance(user_id: uuid.UUID, db: AsyncSession) -> Optional[Balance]:
    result = await db.execute(
        select(Balance)
        .where(Balance.user_id == user_id)
        .order_by(Balance.year.desc(), Balance.month.desc())
        .limit(1)
    )
    return result.scalars().first()


async def opening_balance(user_id: uuid.UUID, year: int, month: int, db: AsyncSession) -> float:
    """
    Closing balance of the month before (year, month).

    Starts from the last stored month before it and adds the net of every
    income and expense recorded after that month. With no stored month the
    whole record history before (year, month) is summed.
    """
    start, _ = month_bounds(year, month)
    anchor = await get_latest_balance_before(user_id, year, month, db)
    if anchor is None:
        opening, since = 0.0, HISTORY_START
    else:
        opening = anchor.current_balance or 0.0
        since, _ = month_bounds(*next_month(anchor.year, anchor.month))

    if since >= start:
        return round(opening, 2)
    income_total = await sum_incomes_between(user_id, since, start, db)
    expense_total = await sum_expenses_between(user_id, since, start, db)
    return compute_month_balance(opening, [income_total], [expense_total])


async def upsert_balance(user_id: uuid.UUID, balance_in: BalanceUpsert, db: AsyncSession) -> Balance:
    balance = await get_balance(user_id, balance_in.year, balance_in.month, db)
    if balance is None:
        balance = Balance(user_id=user_id, year=balance_in.year, month=balance_in.month)
    balance.beginning_balance = balance_in.beginning_balance
    balance.current_balance = balance_in.current_balance
    db.add(balance)
    await db.commit()
    await db.refresh(balance)
    return balance


async def recalculate_balances_from(user_id: uuid.UUID, when: datetime, db: AsyncSession) -> Balance:
    """
    Rebuild the stored balance of the month `when` falls in from its records,
    then carry the new closing balance forward through every later stored
    month so each one opens where the month before it closed.

    The first month of a user's history keeps a manually set opening
    balance (POST /balances) when nothing earlier is recorded.
    """
    year, month = when.year, when.month
    latest = await get_latest_balance(user_id, db)
    last = (year, month)
    if latest is not None and (latest.year, latest.month) > last:
        last = (latest.year, latest.month)

    opening = await opening_balance(user_id, year, month, db)
    first = await get_balance(user_id, year, month, db)
    if first is not None and opening == 0.0:
        earlier = await get_latest_balance_before(user_id, year, month, db)
        if earlier is None:
            opening = first.beginning_balance or 0.0

    touched = None
    while (year, month) <= last:
        start, end = month_bounds(year, month)
        income_total = await sum_incomes_between(user_id, start, end, db)
        expense_total = await sum_expenses_between(user_id, start, end, db)

        balance = await get_balance(user_id, year, month, db)
        if balance is None:
            balance = Balance(user_id=user_id, year=year, month=month)
        balance.beginning_balance = round(opening, 2)
        balance.current_balance = compute_month_balance(opening, [income_total], [expense_total])
        db.add(balance)
        touched = touched or balance

        opening = balance.current_balance
        year, month = next_month(year, month)

    await db.commit()
    await db.refresh(touched)
    return touched
