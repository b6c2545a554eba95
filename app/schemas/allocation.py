# app/schemas/allocation.py
from pydantic import BaseModel

from app.schemas.income import AllocationSplit


class MonthlyAllocation(BaseModel):
    year: int
    month: int
    income_total: float
    allocation: AllocationSplit
    needs_spent: float
    needs_remaining: float
    needs_used_percentage: float
    status: str
