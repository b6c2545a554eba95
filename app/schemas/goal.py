# app/schemas/goal.py
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
import uuid

from app.models.goal import GoalType
from app.schemas.types import UTCDateTime


class GoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    type: GoalType = GoalType.savings
    description: Optional[str] = Field(None, max_length=500)
    target_amount: float = Field(..., gt=0)
    deadline: Optional[UTCDateTime] = None


class GoalCreate(GoalBase):
    current_amount: float = Field(0.0, ge=0)


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[GoalType] = None
    description: Optional[str] = None
    target_amount: Optional[float] = Field(None, gt=0)
    deadline: Optional[UTCDateTime] = None


class GoalRead(GoalBase):
    id: uuid.UUID
    user_id: uuid.UUID
    current_amount: float
    is_completed: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GoalProgressUpdate(BaseModel):
    amount: float = Field(..., description="Amount to add; negative values withdraw")


class GoalProgressResponse(BaseModel):
    goal_id: uuid.UUID
    name: str
    current_amount: float
    target_amount: float
    progress_percentage: float
    remaining_amount: float
    days_left: Optional[int] = None
    monthly_contribution_required: Optional[float] = None
    is_completed: bool
