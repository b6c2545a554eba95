# app/schemas/invoice.py
from typing import Optional, List
from pydantic import BaseModel, Field, EmailStr
from datetime import datetime
import uuid

from app.schemas.types import UTCDateTime


class LineItem(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(1.0, gt=0)
    unit_price: float = Field(..., ge=0)


class InvoiceBase(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=150)
    client_email: Optional[EmailStr] = None
    line_items: List[LineItem] = Field(..., min_length=1)
    tax_rate: float = Field(0.0, ge=0, le=100, description="Percentage, e.g. 8.25")
    due_date: Optional[UTCDateTime] = None
    notes: Optional[str] = Field(None, max_length=1000)
    payment_method: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    invoice_number: Optional[str] = Field(None, max_length=50)


class InvoiceUpdate(BaseModel):
    client_name: Optional[str] = Field(None, min_length=1, max_length=150)
    client_email: Optional[EmailStr] = None
    line_items: Optional[List[LineItem]] = Field(None, min_length=1)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    due_date: Optional[UTCDateTime] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None


class InvoiceRead(InvoiceBase):
    id: uuid.UUID
    user_id: uuid.UUID
    invoice_number: str
    subtotal: float
    tax_amount: float
    total: float
    paid: bool
    paid_at: Optional[datetime] = None
    stripe_payment_intent: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MarkPaidRequest(BaseModel):
    payment_method: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    amount: int


class PaymentMethodSummary(BaseModel):
    payment_method: str
    count: int
    collected: float
    outstanding: float


class InvoiceSummary(BaseModel):
    by_payment_method: List[PaymentMethodSummary]
    total_collected: float
    total_outstanding: float
