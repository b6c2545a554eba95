# app/schemas/voice.py
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from app.models.expense import PaymentMethod


class TranscriptRequest(BaseModel):
    transcript: str = Field(..., min_length=1, max_length=1000)


class ParsedExpense(BaseModel):
    transcript: str
    description: Optional[str] = None
    amount: Optional[float] = None
    date: datetime
    category: str
    payment_method: PaymentMethod
    missing_fields: List[str] = []


class ParsedIncome(BaseModel):
    transcript: str
    description: Optional[str] = None
    amount: Optional[float] = None
    date: datetime
    category: str
    source: str
    missing_fields: List[str] = []


class VoiceCommandResult(BaseModel):
    recognized: bool
    command: Optional[str] = None
    action: Optional[str] = None
    route: Optional[str] = None
    transcript: str


class VoiceCommandInfo(BaseModel):
    phrase: str
    action: str
    route: Optional[str] = None
    description: str
