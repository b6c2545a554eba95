# app/api/v1/routes/ai.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_pro_user, require_superuser
from app.core.auth import User
from app.core.database import get_async_session
from app.crud.expense import get_expenses_for_user, get_expenses_between
from app.crud.goal import get_goals_for_user
from app.crud.income import get_incomes_for_user
from app.crud.balance import get_balance
from app.schemas.ai import (
    AISettingsRead, AISettingsUpdate,
    FinancialAdviceRequest, FinancialAdviceResponse,
    GoalSuggestionsResponse,
    ExpenseAnalysisRequest, ExpenseAnalysisResponse,
    AdviceUsageRequest, AdviceUsageResponse,
)
from app.services.ai_service import (
    AIService, AIServiceError, AIProvider, classify_error, get_ai_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])

ADVICE_POINTS = {
    "financial_advice": 5,
    "goal_suggestion": 10,
    "expense_analysis": 8,
}

ERROR_STATUS = {
    "quota_exceeded": 429,
    "rate_limited": 429,
    "unavailable": 503,
    "unknown": 502,
}

ERROR_MESSAGES = {
    "quota_exceeded": "The AI service quota has been exceeded. Please try again later.",
    "rate_limited": "The AI service is receiving too many requests. Please try again shortly.",
    "unavailable": "AI advice is not available right now.",
    "unknown": "Failed to get a response from the AI service.",
}

PERIOD_DAYS = {"month": 30, "quarter": 90, "year": 365}


def ai_error_response(error: AIServiceError) -> JSONResponse:
    error_type = classify_error(error)
    logger.error(f"❌ AI request failed ({error_type}): {error}")
    return JSONResponse(
        status_code=ERROR_STATUS[error_type],
        content={"detail": ERROR_MESSAGES[error_type], "error": True, "error_type": error_type},
    )


def _income_rows(incomes) -> List[Dict[str, Any]]:
    return [
        {"date": i.date, "description": i.description, "amount": i.amount, "category": i.category}
        for i in incomes
    ]


def _expense_rows(expenses) -> List[Dict[str, Any]]:
    return [
        {"date": e.date, "description": e.description, "amount": e.amount, "category": e.category}
        for e in expenses
    ]


def _preferred(name) -> Optional[AIProvider]:
    return AIProvider(name) if name else None


@router.get("/settings", response_model=AISettingsRead)
async def read_ai_settings(
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
):
    return ai.get_settings()


@router.patch("/settings", response_model=AISettingsRead)
async def update_ai_settings(
    settings_in: AISettingsUpdate,
    user: User = Depends(require_superuser),
    ai: AIService = Depends(get_ai_service),
):
    return ai.update_settings(settings_in.dict(exclude_unset=True))


@router.post("/financial-advice", response_model=FinancialAdviceResponse)
async def financial_advice(
    advice_request: FinancialAdviceRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_pro_user),
    ai: AIService = Depends(get_ai_service),
):
    """Advice on the user's incomes, expenses, goals and balance under the 40/30/30 model."""
    now = datetime.utcnow()
    balance = await get_balance(user.id, now.year, now.month, db)
    financial_data = {
        "incomes": _income_rows(await get_incomes_for_user(user.id, db)),
        "expenses": _expense_rows(await get_expenses_for_user(user.id, db)),
        "goals": [
            {"name": g.name, "type": g.type, "target_amount": g.target_amount,
             "current_amount": g.current_amount, "deadline": g.deadline}
            for g in await get_goals_for_user(user.id, db)
        ],
        "balance": balance.current_balance if balance else None,
    }
    try:
        return await ai.get_financial_advice(financial_data, advice_request.question,
                                             _preferred(advice_request.preferred_provider))
    except AIServiceError as e:
        return ai_error_response(e)


@router.post("/suggest-goals", response_model=GoalSuggestionsResponse)
async def suggest_goals(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_pro_user),
    ai: AIService = Depends(get_ai_service),
):
    incomes = _income_rows(await get_incomes_for_user(user.id, db))
    try:
        return await ai.suggest_financial_goals(incomes)
    except AIServiceError as e:
        return ai_error_response(e)


@router.post("/analyze-expenses", response_model=ExpenseAnalysisResponse)
async def analyze_expenses(
    analysis_request: ExpenseAnalysisRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(require_pro_user),
    ai: AIService = Depends(get_ai_service),
):
    end = datetime.utcnow() + timedelta(days=1)
    start = end - timedelta(days=PERIOD_DAYS[analysis_request.period] + 1)
    expenses = _expense_rows(await get_expenses_between(user.id, start, end, db))
    try:
        return await ai.analyze_expenses(expenses, analysis_request.period)
    except AIServiceError as e:
        return ai_error_response(e)


@router.post("/mark-advice-used", response_model=AdviceUsageResponse)
async def mark_advice_used(
    usage: AdviceUsageRequest,
    user: User = Depends(get_current_user),
):
    points = ADVICE_POINTS[usage.advice_type]
    logger.info(f"User {user.id} used {usage.advice_type} advice (+{points} points)")
    return AdviceUsageResponse(
        success=True,
        points_awarded=points,
        reason=f"Used {usage.advice_type.replace('_', ' ')}",
    )
