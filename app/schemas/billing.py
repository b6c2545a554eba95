# app/schemas/billing.py
from typing import Optional
from pydantic import BaseModel


class CheckoutSessionRequest(BaseModel):
    price_id: Optional[str] = None


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: str


class VerifySessionResponse(BaseModel):
    success: bool
    tier: str
    active: bool


class WebhookAck(BaseModel):
    received: bool = True
    event_type: Optional[str] = None
