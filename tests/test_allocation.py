from datetime import date, datetime
from decimal import Decimal

import pytest

from app.utils.allocation import (
    allocate,
    apply_goal_progress,
    budget_status,
    compute_month_balance,
    goal_progress,
    month_bounds,
    monthly_allocation_summary,
    next_month,
    period_start,
    top_categories,
)


def test_allocate_splits_40_30_30():
    assert allocate(1000) == {"total": 1000.0, "needs": 400.0, "investments": 300.0, "savings": 300.0}


def test_allocate_parts_always_add_up():
    for cents in range(1, 20001, 7):
        amount = cents / 100
        split = allocate(amount)
        parts = sum(Decimal(str(split[k])) for k in ("needs", "investments", "savings"))
        assert parts == Decimal(str(amount))


def test_allocate_rounds_half_up_in_cents():
    assert allocate(0.15) == {"total": 0.15, "needs": 0.06, "investments": 0.05, "savings": 0.04}


def test_allocate_savings_absorbs_rounding():
    split = allocate(0.01)
    assert split["needs"] == 0.0
    assert split["investments"] == 0.0
    assert split["savings"] == 0.01


def test_allocate_rejects_negative():
    with pytest.raises(ValueError):
        allocate(-5)


def test_allocate_zero():
    assert allocate(0) == {"total": 0.0, "needs": 0.0, "investments": 0.0, "savings": 0.0}


@pytest.mark.parametrize("spent,allocated,expected", [
    (0, 400, "on_track"),
    (359, 400, "on_track"),
    (360, 400, "near_limit"),
    (400, 400, "near_limit"),
    (401, 400, "over_budget"),
    (10, 0, "over_budget"),
    (0, 0, "on_track"),
])
def test_budget_status(spent, allocated, expected):
    assert budget_status(spent, allocated) == expected


def test_monthly_allocation_summary():
    summary = monthly_allocation_summary(2000, 500)
    assert summary["allocation"]["needs"] == 800.0
    assert summary["needs_spent"] == 500.0
    assert summary["needs_remaining"] == 300.0
    assert summary["needs_used_percentage"] == 62.5
    assert summary["status"] == "on_track"


def test_monthly_allocation_summary_without_income():
    summary = monthly_allocation_summary(0, 50)
    assert summary["needs_used_percentage"] == 0.0
    assert summary["status"] == "over_budget"


def test_month_bounds_handles_december():
    assert month_bounds(2024, 12) == (datetime(2024, 12, 1), datetime(2025, 1, 1))
    assert month_bounds(2024, 2) == (datetime(2024, 2, 1), datetime(2024, 3, 1))
    with pytest.raises(ValueError):
        month_bounds(2024, 13)


def test_next_month_wraps_year():
    assert next_month(2024, 12) == (2025, 1)
    assert next_month(2025, 6) == (2025, 7)


def test_period_start():
    wednesday = date(2025, 3, 12)
    assert period_start("weekly", wednesday) == datetime(2025, 3, 10)
    assert period_start("monthly", wednesday) == datetime(2025, 3, 1)


def test_compute_month_balance():
    assert compute_month_balance(None, [100, 50.5], [20]) == 130.5
    assert compute_month_balance(1000, [], [250.25]) == 749.75


def test_apply_goal_progress_never_negative():
    assert apply_goal_progress(100, 500, -300) == (0.0, False)
    assert apply_goal_progress(450, 500, 50) == (500.0, True)


def test_goal_progress_with_deadline():
    report = goal_progress(250, 1000, datetime(2025, 4, 1), today=date(2025, 1, 1))
    assert report["progress_percentage"] == 25.0
    assert report["remaining_amount"] == 750.0
    assert report["days_left"] == 90
    assert report["monthly_contribution_required"] == 250.0
    assert report["is_completed"] is False


def test_goal_progress_past_deadline_and_overfunded():
    overdue = goal_progress(100, 1000, datetime(2024, 12, 1), today=date(2025, 1, 1))
    assert overdue["days_left"] < 0
    assert overdue["monthly_contribution_required"] == 900.0

    done = goal_progress(1200, 1000, None)
    assert done["progress_percentage"] == 100.0
    assert done["remaining_amount"] == 0.0
    assert done["monthly_contribution_required"] is None
    assert done["is_completed"] is True


def test_top_categories():
    ranked = top_categories([("food", 30), ("housing", 60), ("food", 10)], limit=1)
    assert ranked == [{"category": "housing", "amount": 60.0, "percentage": 60.0}]
