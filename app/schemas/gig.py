# app/schemas/gig.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
import uuid

from app.models.gig import GigStatus


class GigBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)
    description: str = Field(..., min_length=1, max_length=2000)
    category: str = "service"
    pay_amount: float = Field(..., gt=0)
    location: Optional[str] = None
    is_remote: bool = False


class GigCreate(GigBase):
    pass


class GigUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[str] = None
    pay_amount: Optional[float] = Field(None, gt=0)
    location: Optional[str] = None
    is_remote: Optional[bool] = None
    status: Optional[GigStatus] = None


class GigRead(GigBase):
    id: uuid.UUID
    created_by: uuid.UUID
    status: GigStatus
    assigned_to: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GigApplicationCreate(BaseModel):
    message: Optional[str] = Field(None, max_length=1000)


class GigApplicationRead(BaseModel):
    id: uuid.UUID
    gig_id: uuid.UUID
    applicant_id: uuid.UUID
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
