# app/crud/user.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.core.auth import User, ONBOARDING_STEPS
from typing import Optional, Dict, Any
from datetime import datetime
import uuid


async def get_user_by_id(user_id: uuid.UUID, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_stripe_customer(customer_id: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.stripe_customer_id == customer_id))
    return result.scalar_one_or_none()


async def update_user_fields(user: User, changes: Dict[str, Any], db: AsyncSession) -> User:
    for field, value in changes.items():
        setattr(user, field, value)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def onboarding_state(user: User) -> Dict[str, bool]:
    stored = user.onboarding_steps or {}
    return {step: bool(stored.get(step, False)) for step in ONBOARDING_STEPS}


async def set_onboarding_step(user: User, step: str, completed: bool, db: AsyncSession) -> User:
    steps = onboarding_state(user)
    steps[step] = completed
    # Reassign so the JSON column is flagged dirty
    user.onboarding_steps = dict(steps)
    user.onboarding_completed = all(steps.values())
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def activate_pro(user: User, db: AsyncSession, subscription_id: Optional[str] = None,
                       period_end: Optional[datetime] = None) -> User:
    user.subscription_tier = "pro"
    user.subscription_active = True
    user.subscription_start = user.subscription_start or datetime.utcnow()
    if period_end is not None:
        user.subscription_end = period_end
    if subscription_id:
        user.stripe_subscription_id = subscription_id
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def downgrade_to_free(user: User, db: AsyncSession) -> User:
    user.subscription_tier = "free"
    user.subscription_active = False
    user.subscription_end = datetime.utcnow()
    user.stripe_subscription_id = None
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user
