# app/api/v1/routes/goals.py
import uuid
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import goal as crud_goal
from app.models.goal import Goal, GoalType
from app.schemas.goal import GoalCreate, GoalUpdate, GoalRead, GoalProgressUpdate, GoalProgressResponse
from app.utils.allocation import apply_goal_progress, goal_progress
from app.utils.notifications import notify_goal_completed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


def progress_report(goal: Goal) -> GoalProgressResponse:
    return GoalProgressResponse(
        goal_id=goal.id,
        name=goal.name,
        **goal_progress(goal.current_amount, goal.target_amount, goal.deadline),
    )


async def _get_owned_goal(goal_id: uuid.UUID, user: User, db: AsyncSession) -> Goal:
    goal = await crud_goal.get_goal_by_id(goal_id, user.id, db)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.get("/", response_model=List[GoalRead])
async def list_goals(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_goal.get_goals_for_user(user.id, db)


@router.get("/type/{goal_type}", response_model=List[GoalRead])
async def list_goals_by_type(
    goal_type: GoalType,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_goal.get_goals_by_type(user.id, goal_type, db)


@router.post("/", response_model=GoalRead, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal_in: GoalCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_goal.create_goal_for_user(user.id, goal_in, db)


@router.get("/{goal_id}", response_model=GoalRead)
async def get_goal(
    goal_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await _get_owned_goal(goal_id, user, db)


@router.patch("/{goal_id}", response_model=GoalRead)
async def update_goal(
    goal_id: uuid.UUID,
    goal_in: GoalUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    goal = await _get_owned_goal(goal_id, user, db)
    return await crud_goal.update_goal(goal, goal_in, db)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    goal = await _get_owned_goal(goal_id, user, db)
    await crud_goal.delete_goal(goal, db)


@router.get("/{goal_id}/progress", response_model=GoalProgressResponse)
async def get_goal_progress(
    goal_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Returns:
    - **progress_percentage**: share of the target saved, capped at 100
    - **remaining_amount**: amount still needed
    - **days_left**: days until the deadline (negative once it has passed)
    - **monthly_contribution_required**: what must be put aside each month to hit the deadline
    """
    goal = await _get_owned_goal(goal_id, user, db)
    return progress_report(goal)


@router.patch("/{goal_id}/progress", response_model=GoalRead)
async def add_goal_progress(
    goal_id: uuid.UUID,
    progress: GoalProgressUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Add an amount to a goal (negative to withdraw). The saved amount never
    drops below zero; reaching the target completes the goal.
    """
    goal = await _get_owned_goal(goal_id, user, db)
    was_completed = goal.is_completed

    new_amount, completed = apply_goal_progress(goal.current_amount, goal.target_amount, progress.amount)
    goal = await crud_goal.set_goal_amount(goal, new_amount, completed, db)

    if completed and not was_completed:
        logger.info(f"🎯 Goal {goal.id} completed for user {user.id}")
        await notify_goal_completed(db, user.id, goal.name, goal.target_amount)
    return goal
