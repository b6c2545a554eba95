# app/schemas/income.py
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
import uuid

from app.models.income import normalize_income_category
from app.schemas.types import UTCDateTime


class IncomeBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=255, description="e.g. Furnace repair for J. Smith")
    amount: float = Field(..., gt=0)
    date: Optional[UTCDateTime] = None
    source: str = "Manual"
    category: str = "other"

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str) -> str:
        return normalize_income_category(value)


class IncomeCreate(IncomeBase):
    pass


class IncomeUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[UTCDateTime] = None
    source: Optional[str] = None
    category: Optional[str] = None

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: Optional[str]) -> Optional[str]:
        return normalize_income_category(value) if value is not None else None


class IncomeRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    description: str
    amount: float
    date: datetime
    source: str
    category: str
    bank_transaction_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AllocationSplit(BaseModel):
    total: float
    needs: float
    investments: float
    savings: float


class IncomeWithAllocation(IncomeRead):
    allocation: AllocationSplit


class IncomeCategory(BaseModel):
    id: str
    name: str
    icon: str


class IncomeCategoryList(BaseModel):
    categories: List[IncomeCategory]
