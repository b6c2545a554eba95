# app/api/v1/routes/guardrails.py
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import spending_limit as crud_limit
from app.schemas.spending_limit import (
    SpendingLimitCreate, SpendingLimitUpdate, SpendingLimitRead, GuardrailStatusList,
    SpendingSummary, GuardrailAlerts, WeeklyReflectionRead,
)
from app.models.spending_limit import LimitPeriod
from app.services.ai_service import AIService, AIServiceError, get_ai_service
from app.utils.guardrails import guardrail_statuses, spending_summary, guardrail_alerts, overall_status

logger = logging.getLogger(__name__)

DEFAULT_REFLECTION = (
    "Review your spending in categories close to or over budget, and consider adjusting your limits "
    "or spending habits. Focus on categories where you're within budget and apply those successful "
    "strategies to other areas."
)

router = APIRouter(prefix="/guardrails", tags=["guardrails"])


@router.get("/limits", response_model=List[SpendingLimitRead])
async def list_limits(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_limit.get_limits_for_user(user.id, db)


@router.post("/limits", response_model=SpendingLimitRead, status_code=status.HTTP_201_CREATED)
async def create_limit(
    limit_in: SpendingLimitCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_limit.create_limit_for_user(user.id, limit_in, db)


@router.patch("/limits/{limit_id}", response_model=SpendingLimitRead)
async def update_limit(
    limit_id: uuid.UUID,
    limit_in: SpendingLimitUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    limit = await crud_limit.get_limit_by_id(limit_id, user.id, db)
    if not limit:
        raise HTTPException(status_code=404, detail="Spending limit not found")
    return await crud_limit.update_limit(limit, limit_in, db)


@router.delete("/limits/{limit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_limit(
    limit_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    limit = await crud_limit.get_limit_by_id(limit_id, user.id, db)
    if not limit:
        raise HTTPException(status_code=404, detail="Spending limit not found")
    await crud_limit.delete_limit(limit, db)


@router.get("/status", response_model=GuardrailStatusList)
async def get_guardrail_status(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Spending so far in each active limit's current week or month."""
    return {"guardrails": await guardrail_statuses(db, user.id)}


@router.get("/summary", response_model=SpendingSummary)
async def get_spending_summary(
    period: LimitPeriod = LimitPeriod.monthly,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Spending per category this week or month, next to the limits set for that period."""
    return await spending_summary(db, user.id, period.value)


@router.get("/alerts", response_model=GuardrailAlerts)
async def get_guardrail_alerts(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await guardrail_alerts(db, user.id)


@router.get("/reflection", response_model=WeeklyReflectionRead)
async def get_weekly_reflection(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
):
    """
    This week's spending reflection. It is written once per week; later
    calls in the same week return the stored one.
    """
    summary = await spending_summary(db, user.id, LimitPeriod.weekly.value)
    existing = await crud_limit.get_reflection_for_week(user.id, summary["period_start"], db)
    if existing:
        return existing

    status_value = overall_status(summary["categories"])
    suggestion = DEFAULT_REFLECTION
    try:
        result = await ai.weekly_reflection(summary, status_value)
        suggestion = result["suggestion"] or DEFAULT_REFLECTION
    except AIServiceError as e:
        logger.warning(f"⚠️ Using the default weekly reflection for user {user.id}: {e}")

    return await crud_limit.create_reflection(user.id, summary, status_value, suggestion, db)


@router.get("/reflections/history", response_model=List[WeeklyReflectionRead])
async def get_reflection_history(
    limit: int = Query(4, ge=1, le=52),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_limit.get_reflections_for_user(user.id, db, limit=limit)
