# app/schemas/user.py
from typing import Optional, Dict
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from app.core.auth import ONBOARDING_STEPS


# Fields accepted on PATCH /users/me
class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    business_name: Optional[str] = None
    occupation: Optional[str] = None
    monthly_income_target: Optional[float] = Field(None, ge=0)


class OnboardingStepUpdate(BaseModel):
    step: str
    completed: bool = True

    @field_validator("step")
    @classmethod
    def known_step(cls, value: str) -> str:
        if value not in ONBOARDING_STEPS:
            raise ValueError(f"Unknown onboarding step. Expected one of: {', '.join(ONBOARDING_STEPS)}")
        return value


class OnboardingStatus(BaseModel):
    steps: Dict[str, bool]
    onboarding_completed: bool


class SubscriptionStatus(BaseModel):
    tier: str
    active: bool
    is_pro: bool
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
