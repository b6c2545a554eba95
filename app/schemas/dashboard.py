# app/schemas/dashboard.py
from typing import List, Dict, Any
from pydantic import BaseModel

from app.schemas.income import AllocationSplit
from app.schemas.goal import GoalProgressResponse


class DashboardSummary(BaseModel):
    year: int
    month: int
    income_total: float
    expense_total: float
    net: float
    allocation: AllocationSplit
    budget_status: str
    top_expense_categories: List[Dict[str, Any]]
    active_goals: List[GoalProgressResponse]
    current_balance: float
    unread_notifications: int
