# app/utils/guardrails.py
"""
Spending guardrails: per-category limits checked against what has been
spent since the start of the current week (Monday) or month.

A limit alerts at most once per level per period; crossing from warning to
exceeded in the same period still alerts again.
"""
import logging
import uuid
from datetime import datetime, date, timedelta
from typing import Dict, Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.expense import sum_expenses_between, get_expenses_between
from app.crud.spending_limit import get_limits_for_user, get_limits_for_category
from app.models.spending_limit import SpendingLimit
from app.utils.allocation import period_start
from app.utils.notifications import notify_guardrail

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 80.0

LEVEL_RANK = {None: 0, "ok": 0, "warning": 1, "exceeded": 2}


def guardrail_level(spent: float, limit_amount: float) -> str:
    if limit_amount <= 0:
        return "exceeded" if spent > 0 else "ok"
    pct = spent / limit_amount * 100
    if pct >= 100:
        return "exceeded"
    if pct >= WARNING_THRESHOLD:
        return "warning"
    return "ok"


def period_end(period: str, start: datetime) -> datetime:
    if period == "weekly":
        return start + timedelta(days=7)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def should_alert(limit: SpendingLimit, level: str, start: datetime) -> bool:
    if level == "ok":
        return False
    if limit.last_alert_period_start != start:
        return True
    return LEVEL_RANK[level] > LEVEL_RANK.get(limit.last_alert_level, 0)


def _period_value(limit: SpendingLimit) -> str:
    return limit.period.value if hasattr(limit.period, "value") else str(limit.period)


async def limit_status(db: AsyncSession, user_id: uuid.UUID, limit: SpendingLimit,
                       today: Optional[date] = None) -> Dict[str, Any]:
    period = _period_value(limit)
    start = period_start(period, today)
    spent = await sum_expenses_between(user_id, start, period_end(period, start), db, category=limit.category)
    return {
        "limit_id": limit.id,
        "category": limit.category,
        "period": period,
        "period_start": start,
        "limit_amount": limit.limit_amount,
        "spent": round(spent, 2),
        "remaining": round(max(0.0, limit.limit_amount - spent), 2),
        "percentage": round(spent / limit.limit_amount * 100, 2) if limit.limit_amount > 0 else 0.0,
        "level": guardrail_level(spent, limit.limit_amount),
    }


async def guardrail_statuses(db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None) -> List[Dict[str, Any]]:
    limits = await get_limits_for_user(user_id, db, active_only=True)
    return [await limit_status(db, user_id, limit, today) for limit in limits]


async def evaluate_guardrails(db: AsyncSession, user_id: uuid.UUID, category: str,
                              today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Check the limits on a category after spending in it and send any new alerts."""
    alerts = []
    for limit in await get_limits_for_category(user_id, category, db):
        status = await limit_status(db, user_id, limit, today)
        level = status["level"]
        if not should_alert(limit, level, status["period_start"]):
            continue

        limit.last_alert_level = level
        limit.last_alert_period_start = status["period_start"]
        db.add(limit)
        await db.commit()

        logger.info(f"⚠️ Guardrail {level} for user {user_id} on {category}: {status['spent']} / {limit.limit_amount}")
        await notify_guardrail(db, user_id, category, level, status["spent"], limit.limit_amount, status["period"])
        alerts.append(status)
    return alerts


async def spending_summary(db: AsyncSession, user_id: uuid.UUID, period: str,
                           today: Optional[date] = None) -> Dict[str, Any]:
    """Spending per category this week or month, next to any limit set for that period."""
    start = period_start(period, today)
    end = period_end(period, start)

    spent: Dict[str, float] = {}
    for expense in await get_expenses_between(user_id, start, end, db):
        spent[expense.category] = spent.get(expense.category, 0.0) + expense.amount

    limits = {
        limit.category: limit.limit_amount
        for limit in await get_limits_for_user(user_id, db, active_only=True)
        if _period_value(limit) == period
    }

    categories = []
    for category in sorted(set(spent) | set(limits)):
        amount = round(spent.get(category, 0.0), 2)
        limit_amount = limits.get(category)
        categories.append({
            "category": category,
            "spent": amount,
            "limit_amount": limit_amount,
            "percentage": round(amount / limit_amount * 100, 2) if limit_amount else 0.0,
            "level": guardrail_level(amount, limit_amount) if limit_amount is not None else "ok",
        })

    return {
        "period": period,
        "period_start": start,
        "period_end": end,
        "total_spent": round(sum(spent.values()), 2),
        "total_limit": round(sum(limits.values()), 2) if limits else None,
        "categories": categories,
    }


async def guardrail_alerts(db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None) -> Dict[str, Any]:
    """Active limits currently at warning or exceeded level."""
    alerts = [s for s in await guardrail_statuses(db, user_id, today) if s["level"] != "ok"]
    return {
        "has_warnings": any(a["level"] == "warning" for a in alerts),
        "has_overages": any(a["level"] == "exceeded" for a in alerts),
        "alerts": alerts,
    }


def overall_status(categories: List[Dict[str, Any]]) -> str:
    levels = {c["level"] for c in categories}
    if "exceeded" in levels:
        return "over_budget"
    if "warning" in levels:
        return "warning"
    return "good"
