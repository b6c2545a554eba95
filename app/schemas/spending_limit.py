# app/schemas/spending_limit.py
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
import uuid

from app.models.expense import normalize_expense_category
from app.models.spending_limit import LimitPeriod


class SpendingLimitCreate(BaseModel):
    category: str
    limit_amount: float = Field(..., gt=0)
    period: LimitPeriod = LimitPeriod.monthly
    is_active: bool = True

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str) -> str:
        return normalize_expense_category(value)


class SpendingLimitUpdate(BaseModel):
    limit_amount: Optional[float] = Field(None, gt=0)
    period: Optional[LimitPeriod] = None
    is_active: Optional[bool] = None


class SpendingLimitRead(BaseModel):
    id: uuid.UUID
    category: str
    limit_amount: float
    period: LimitPeriod
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GuardrailStatus(BaseModel):
    limit_id: uuid.UUID
    category: str
    period: LimitPeriod
    period_start: datetime
    limit_amount: float
    spent: float
    remaining: float
    percentage: float
    level: str  # ok, warning, exceeded


class GuardrailStatusList(BaseModel):
    guardrails: List[GuardrailStatus]


class CategorySpending(BaseModel):
    category: str
    spent: float
    limit_amount: Optional[float] = None
    percentage: float
    level: str


class SpendingSummary(BaseModel):
    period: LimitPeriod
    period_start: datetime
    period_end: datetime
    total_spent: float
    total_limit: Optional[float] = None
    categories: List[CategorySpending]


class GuardrailAlerts(BaseModel):
    has_warnings: bool
    has_overages: bool
    alerts: List[GuardrailStatus]


class WeeklyReflectionRead(BaseModel):
    id: uuid.UUID
    week_start: datetime
    week_end: datetime
    overall_status: str  # good, warning, over_budget
    category_summary: List[CategorySpending]
    ai_suggestion: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
