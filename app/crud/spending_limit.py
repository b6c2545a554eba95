# app/crud/spending_limit.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.spending_limit import SpendingLimit, WeeklyReflection
from app.schemas.spending_limit import SpendingLimitCreate, SpendingLimitUpdate
from typing import Any, Dict, List, Optional
from datetime import datetime
import uuid


async def get_limits_for_user(user_id: uuid.UUID, db: AsyncSession, active_only: bool = False) -> List[SpendingLimit]:
    query = select(SpendingLimit).where(SpendingLimit.user_id == user_id)
    if active_only:
        query = query.where(SpendingLimit.is_active == True)
    result = await db.execute(query.order_by(SpendingLimit.category))
    return result.scalars().all()


async def get_limits_for_category(user_id: uuid.UUID, category: str, db: AsyncSession) -> List[SpendingLimit]:
    result = await db.execute(
        select(SpendingLimit).where(
            SpendingLimit.user_id == user_id,
            SpendingLimit.category == category,
            SpendingLimit.is_active == True,
        )
    )
    return result.scalars().all()


async def get_limit_by_id(limit_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[SpendingLimit]:
    result = await db.execute(
        select(SpendingLimit).where(SpendingLimit.id == limit_id, SpendingLimit.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_limit_for_user(user_id: uuid.UUID, limit_in: SpendingLimitCreate, db: AsyncSession) -> SpendingLimit:
    new_limit = SpendingLimit(**limit_in.dict(), user_id=user_id)
    db.add(new_limit)
    await db.commit()
    await db.refresh(new_limit)
    return new_limit


async def update_limit(limit: SpendingLimit, limit_in: SpendingLimitUpdate, db: AsyncSession) -> SpendingLimit:
    changes = limit_in.dict(exclude_unset=True)
    for field, value in changes.items():
        if value is not None:
            setattr(limit, field, value)
    if "limit_amount" in changes or "period" in changes:
        # A new threshold starts alerting from scratch
        limit.last_alert_level = None
        limit.last_alert_period_start = None
    db.add(limit)
    await db.commit()
    await db.refresh(limit)
    return limit


async def delete_limit(limit: SpendingLimit, db: AsyncSession) -> None:
    await db.delete(limit)
    await db.commit()


async def get_reflection_for_week(user_id: uuid.UUID, week_start: datetime, db: AsyncSession) -> Optional[WeeklyReflection]:
    result = await db.execute(
        select(WeeklyReflection).where(WeeklyReflection.user_id == user_id, WeeklyReflection.week_start == week_start)
    )
    return result.scalar_one_or_none()


async def get_reflections_for_user(user_id: uuid.UUID, db: AsyncSession, limit: int = 4) -> List[WeeklyReflection]:
    result = await db.execute(
        select(WeeklyReflection)
        .where(WeeklyReflection.user_id == user_id)
        .order_by(WeeklyReflection.week_start.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def create_reflection(user_id: uuid.UUID, summary: Dict[str, Any], overall_status: str,
                            ai_suggestion: str, db: AsyncSession) -> WeeklyReflection:
    reflection = WeeklyReflection(
        user_id=user_id,
        week_start=summary["period_start"],
        week_end=summary["period_end"],
        overall_status=overall_status,
        category_summary=summary["categories"],
        ai_suggestion=ai_suggestion,
    )
    db.add(reflection)
    await db.commit()
    await db.refresh(reflection)
    return reflection
