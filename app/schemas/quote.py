# app/schemas/quote.py
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, EmailStr, field_validator
from datetime import datetime
import uuid

from app.models.quote import QuoteStatus, QuoteTier
from app.utils.quotes import normalize_industry


class QuoteLineItem(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(1.0, gt=0)
    unit_price: float = Field(..., ge=0)
    category: str = "labor"  # labor, materials, other


class QuoteLineItemRead(QuoteLineItem):
    total: float


class QuoteEstimateRequest(BaseModel):
    industry: str = Field(..., min_length=1, max_length=50)
    base_price: float = Field(..., ge=0)
    experience_years: float = Field(0.0, ge=0)


class QuoteEstimate(BaseModel):
    industry: str
    base_price: float
    base_margin: float
    experience_margin: float
    profit_margin: float
    season: str
    seasonal_factor: float
    price: float
    tiered_pricing: Dict[str, float]


class QuoteBase(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=150)
    client_email: Optional[EmailStr] = None
    industry: str = Field(..., min_length=1, max_length=50)
    service_type: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=2000)
    experience_years: float = Field(0.0, ge=0)
    selected_tier: QuoteTier = QuoteTier.standard
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("industry")
    @classmethod
    def normalize(cls, value: str) -> str:
        return normalize_industry(value)


class QuoteCreate(QuoteBase):
    line_items: List[QuoteLineItem] = Field(..., min_length=1)


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus


class QuoteRead(QuoteBase):
    id: uuid.UUID
    user_id: uuid.UUID
    line_items: List[QuoteLineItemRead]
    profit_margin: float
    subtotal: float
    tax: float
    total: float
    tiered_pricing: Dict[str, float]
    status: QuoteStatus
    is_expired: bool
    expires_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuoteHistoryStats(BaseModel):
    total_quotes: int
    average_margin: float
    preferred_industries: List[str]
    accepted_quotes: int
    acceptance_rate: float
    total_quoted: float
    total_accepted: float


class QuoteHistory(BaseModel):
    quotes: List[QuoteRead]
    stats: QuoteHistoryStats
