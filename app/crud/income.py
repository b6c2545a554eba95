# app/crud/income.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from app.models.income import Income
from app.schemas.income import IncomeCreate, IncomeUpdate
from app.utils.allocation import month_bounds
from app.core.db_utils import with_db_retry
from typing import List, Optional
from datetime import datetime
import uuid


@with_db_retry()
async def get_incomes_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Income]:
    result = await db.execute(
        select(Income).where(Income.user_id == user_id).order_by(Income.date.desc())
    )
    return result.scalars().all()


async def get_income_by_id(income_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Income]:
    result = await db.execute(
        select(Income).where(Income.id == income_id, Income.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_incomes_between(user_id: uuid.UUID, start: datetime, end: datetime, db: AsyncSession) -> List[Income]:
    result = await db.execute(
        select(Income)
        .where(Income.user_id == user_id, Income.date >= start, Income.date < end)
        .order_by(Income.date.desc())
    )
    return result.scalars().all()


async def get_incomes_by_month(user_id: uuid.UUID, year: int, month: int, db: AsyncSession) -> List[Income]:
    start, end = month_bounds(year, month)
    return await get_incomes_between(user_id, start, end, db)


async def sum_incomes_between(user_id: uuid.UUID, start: datetime, end: datetime, db: AsyncSession) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(Income.amount), 0.0))
        .where(Income.user_id == user_id, Income.date >= start, Income.date < end)
    )
    return float(result.scalar_one())


async def create_income_for_user(user_id: uuid.UUID, income_in: IncomeCreate, db: AsyncSession,
                                 bank_transaction_id: Optional[uuid.UUID] = None) -> Income:
    data = income_in.dict()
    data["date"] = data.get("date") or datetime.utcnow()
    new_income = Income(**data, user_id=user_id, bank_transaction_id=bank_transaction_id)
    db.add(new_income)
    await db.commit()
    await db.refresh(new_income)
    return new_income


async def update_income(income: Income, income_in: IncomeUpdate, db: AsyncSession) -> Income:
    for field, value in income_in.dict(exclude_unset=True).items():
        if value is not None:
            setattr(income, field, value)
    db.add(income)
    await db.commit()
    await db.refresh(income)
    return income


async def delete_income(income: Income, db: AsyncSession) -> None:
    await db.delete(income)
    await db.commit()
