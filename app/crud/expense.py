# app/crud/expense.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from app.models.expense import Expense
from app.schemas.expense import ExpenseCreate, ExpenseUpdate
from app.utils.allocation import month_bounds
from app.core.db_utils import with_db_retry
from typing import List, Optional
from datetime import datetime
import uuid


@with_db_retry()
async def get_expenses_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Expense]:
    result = await db.execute(
        select(Expense).where(Expense.user_id == user_id).order_by(Expense.date.desc())
    )
    return result.scalars().all()


async def get_expense_by_id(expense_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Expense]:
    result = await db.execute(
        select(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_expenses_between(user_id: uuid.UUID, start: datetime, end: datetime, db: AsyncSession) -> List[Expense]:
    result = await db.execute(
        select(Expense)
        .where(Expense.user_id == user_id, Expense.date >= start, Expense.date < end)
        .order_by(Expense.date.desc())
    )
    return result.scalars().all()


async def get_expenses_by_month(user_id: uuid.UUID, year: int, month: int, db: AsyncSession) -> List[Expense]:
    start, end = month_bounds(year, month)
    return await get_expenses_between(user_id, start, end, db)


async def get_expenses_by_category(user_id: uuid.UUID, category: str, db: AsyncSession) -> List[Expense]:
    result = await db.execute(
        select(Expense)
        .where(Expense.user_id == user_id, Expense.category == category)
        .order_by(Expense.date.desc())
    )
    return result.scalars().all()


async def sum_expenses_between(user_id: uuid.UUID, start: datetime, end: datetime, db: AsyncSession,
                               category: Optional[str] = None) -> float:
    query = select(func.coalesce(func.sum(Expense.amount), 0.0)).where(
        Expense.user_id == user_id, Expense.date >= start, Expense.date < end
    )
    if category is not None:
        query = query.where(Expense.category == category)
    result = await db.execute(query)
    return float(result.scalar_one())


async def create_expense_for_user(user_id: uuid.UUID, expense_in: ExpenseCreate, db: AsyncSession) -> Expense:
    data = expense_in.dict()
    data["date"] = data.get("date") or datetime.utcnow()
    new_expense = Expense(**data, user_id=user_id)
    db.add(new_expense)
    await db.commit()
    await db.refresh(new_expense)
    return new_expense


async def update_expense(expense: Expense, expense_in: ExpenseUpdate, db: AsyncSession) -> Expense:
    for field, value in expense_in.dict(exclude_unset=True).items():
        if value is not None:
            setattr(expense, field, value)
    db.add(expense)
    await db.commit()
    await db.refresh(expense)
    return expense


async def delete_expense(expense: Expense, db: AsyncSession) -> None:
    await db.delete(expense)
    await db.commit()
