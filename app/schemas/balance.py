# app/schemas/balance.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
import uuid


class BalanceUpsert(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    beginning_balance: float = 0.0
    current_balance: float


class BalanceRead(BaseModel):
    id: Optional[uuid.UUID] = None
    year: int
    month: int
    beginning_balance: float
    current_balance: float
    last_updated: Optional[datetime] = None
    # False when the balance was computed from records instead of loaded
    stored: bool = True

    class Config:
        from_attributes = True
