# app/schemas/expense.py
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
import uuid

from app.models.expense import PaymentMethod, normalize_expense_category
from app.schemas.types import UTCDateTime


class ExpenseBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=255, description="e.g. Groceries, Van insurance")
    amount: float = Field(..., gt=0)
    date: Optional[UTCDateTime] = None
    category: str = "other"
    payment_method: PaymentMethod = PaymentMethod.cash
    notes: Optional[str] = Field(None, max_length=500)
    is_recurring: bool = False

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str) -> str:
        return normalize_expense_category(value)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[UTCDateTime] = None
    category: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: Optional[str]) -> Optional[str]:
        return normalize_expense_category(value) if value is not None else None


class ExpenseRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    description: str
    amount: float
    date: datetime
    category: str
    payment_method: PaymentMethod
    notes: Optional[str] = None
    is_recurring: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseCategory(BaseModel):
    id: str
    name: str
