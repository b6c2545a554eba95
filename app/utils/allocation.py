# app/utils/allocation.py
import calendar
from datetime import datetime, date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Iterable, List, Optional, Tuple

# The 40/30/30 income split: needs / investments / savings
ALLOCATION_RATIOS: Dict[str, Decimal] = {
    "needs": Decimal("0.40"),
    "investments": Decimal("0.30"),
    "savings": Decimal("0.30"),
}

CENT = Decimal("0.01")
NEAR_LIMIT_THRESHOLD = 90.0


def to_cents(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


# ────────────────────────────────────────────────────────────────────────────────
# SPLIT
# ────────────────────────────────────────────────────────────────────────────────
def allocate(amount: float) -> Dict[str, float]:
    """
    Split an amount 40/30/30 into needs, investments and savings.

    The split is done in cents: needs and investments are rounded half-up
    and savings takes the remainder, so the three parts add back up to the
    rounded input exactly.
    """
    if amount is None or amount < 0:
        raise ValueError("Amount to allocate must be zero or positive")

    total = to_cents(amount)
    needs = (total * ALLOCATION_RATIOS["needs"]).quantize(CENT, rounding=ROUND_HALF_UP)
    investments = (total * ALLOCATION_RATIOS["investments"]).quantize(CENT, rounding=ROUND_HALF_UP)
    savings = total - needs - investments

    return {
        "total": float(total),
        "needs": float(needs),
        "investments": float(investments),
        "savings": float(savings),
    }


def budget_status(spent: float, allocated: float) -> str:
    if allocated <= 0:
        return "over_budget" if spent > 0 else "on_track"
    pct = spent / allocated * 100
    if pct > 100:
        return "over_budget"
    if pct >= NEAR_LIMIT_THRESHOLD:
        return "near_limit"
    return "on_track"


def monthly_allocation_summary(income_total: float, expense_total: float) -> Dict[str, Any]:
    """
    Month view of the allocator: the split of the month's income and how
    much of the needs bucket the month's expenses have used.
    """
    split = allocate(max(income_total, 0.0))
    needs = split["needs"]
    spent = round(expense_total, 2)
    return {
        "income_total": split["total"],
        "allocation": split,
        "needs_spent": spent,
        "needs_remaining": round(needs - spent, 2),
        "needs_used_percentage": round(spent / needs * 100, 2) if needs > 0 else 0.0,
        "status": budget_status(spent, needs),
    }


# ────────────────────────────────────────────────────────────────────────────────
# PERIODS
# ────────────────────────────────────────────────────────────────────────────────
def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """[start, end) datetimes for a calendar month (month is 1-12)."""
    if month < 1 or month > 12:
        raise ValueError("Month must be between 1 and 12")
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def period_start(period: str, today: Optional[date] = None) -> datetime:
    """Start of the current week (Monday) or month."""
    today = today or datetime.utcnow().date()
    if period == "weekly":
        start = today - timedelta(days=today.weekday())
    else:
        start = today.replace(day=1)
    return datetime(start.year, start.month, start.day)


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


# ────────────────────────────────────────────────────────────────────────────────
# BALANCES
# ────────────────────────────────────────────────────────────────────────────────
def compute_month_balance(previous_balance: Optional[float],
                          incomes: Iterable[float],
                          expenses: Iterable[float]) -> float:
    """Previous closing balance (0 when unknown) + income - expenses."""
    opening = previous_balance or 0.0
    return round(opening + sum(incomes) - sum(expenses), 2)


# ────────────────────────────────────────────────────────────────────────────────
# GOALS
# ────────────────────────────────────────────────────────────────────────────────
def apply_goal_progress(current_amount: float, target_amount: float, delta: float) -> Tuple[float, bool]:
    """Add delta to a goal, never going below zero. Returns (new amount, completed)."""
    new_amount = round(max(0.0, (current_amount or 0.0) + delta), 2)
    return new_amount, new_amount >= target_amount


def goal_progress(current_amount: float, target_amount: float,
                  deadline: Optional[datetime], today: Optional[date] = None) -> Dict[str, Any]:
    today = today or datetime.utcnow().date()
    current_amount = current_amount or 0.0
    remaining = round(max(0.0, target_amount - current_amount), 2)
    pct = round(min(100.0, current_amount / target_amount * 100), 2) if target_amount > 0 else 0.0

    days_left: Optional[int] = None
    monthly_required: Optional[float] = None
    if deadline is not None:
        days_left = (deadline.date() - today).days
        if remaining <= 0:
            monthly_required = 0.0
        elif days_left <= 0:
            monthly_required = remaining
        else:
            # Partial months count as a whole month of saving
            months_left = max(1, -(-days_left // 30))
            monthly_required = round(remaining / months_left, 2)

    return {
        "current_amount": round(current_amount, 2),
        "target_amount": round(target_amount, 2),
        "progress_percentage": pct,
        "remaining_amount": remaining,
        "days_left": days_left,
        "monthly_contribution_required": monthly_required,
        "is_completed": current_amount >= target_amount,
    }


def top_categories(expenses: Iterable[Tuple[str, float]], limit: int = 5) -> List[Dict[str, Any]]:
    """Aggregate (category, amount) pairs into the biggest spending categories."""
    totals: Dict[str, float] = {}
    for category, amount in expenses:
        totals[category] = totals.get(category, 0.0) + amount
    grand_total = sum(totals.values())
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [
        {
            "category": category,
            "amount": round(amount, 2),
            "percentage": round(amount / grand_total * 100, 2) if grand_total else 0.0,
        }
        for category, amount in ranked
    ]
