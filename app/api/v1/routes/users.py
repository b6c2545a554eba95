# app/api/v1/routes/users.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi_users import BaseUserManager
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from app.core.auth import get_user_manager, User, UserRead
from app.core.database import get_async_session
from app.api.deps import get_current_user
from app.crud.user import update_user_fields, onboarding_state, set_onboarding_step
from app.schemas.user import ProfileUpdate, OnboardingStepUpdate, OnboardingStatus, SubscriptionStatus

router = APIRouter(prefix="/users", tags=["User Management"])


@router.get("/me", response_model=UserRead)
async def read_own_profile(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserRead)
async def update_own_profile(
    user_update: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Update the profile fields of the current user"""
    update_dict = user_update.dict(exclude_unset=True)
    if not update_dict:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields provided for update"
        )

    try:
        return await update_user_fields(user, update_dict, db)
    except SQLAlchemyError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database error occurred while updating profile: {str(e)}"
        )


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_own_profile(
    user: User = Depends(get_current_user),
    user_manager: BaseUserManager[User, uuid.UUID] = Depends(get_user_manager),
):
    """Delete current user's account permanently"""
    await user_manager.delete(user)


@router.get("/me/onboarding", response_model=OnboardingStatus)
async def get_onboarding(user: User = Depends(get_current_user)):
    return OnboardingStatus(steps=onboarding_state(user), onboarding_completed=user.onboarding_completed)


@router.patch("/me/onboarding", response_model=OnboardingStatus)
async def update_onboarding(
    step_update: OnboardingStepUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Mark an onboarding step done (or not); onboarding completes once every step is done."""
    user = await set_onboarding_step(user, step_update.step, step_update.completed, db)
    return OnboardingStatus(steps=onboarding_state(user), onboarding_completed=user.onboarding_completed)


@router.get("/me/subscription", response_model=SubscriptionStatus)
async def read_own_subscription(user: User = Depends(get_current_user)):
    return subscription_status(user)


def subscription_status(user: User) -> SubscriptionStatus:
    return SubscriptionStatus(
        tier=user.subscription_tier,
        active=user.subscription_active,
        is_pro=user.is_pro,
        subscription_start=user.subscription_start,
        subscription_end=user.subscription_end,
    )
