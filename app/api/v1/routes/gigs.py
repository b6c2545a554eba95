# app/api/v1/routes/gigs.py
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User
from app.core.database import get_async_session
from app.crud import gig as crud_gig
from app.models.gig import Gig, GigStatus
from app.schemas.gig import GigCreate, GigUpdate, GigRead, GigApplicationCreate, GigApplicationRead
from app.utils.notifications import notify

router = APIRouter(prefix="/gigs", tags=["gigs"])


async def _get_gig(gig_id: uuid.UUID, db: AsyncSession) -> Gig:
    gig = await crud_gig.get_gig_by_id(gig_id, db)
    if not gig:
        raise HTTPException(status_code=404, detail="Gig not found")
    return gig


def _require_creator(gig: Gig, user: User) -> None:
    if gig.created_by != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the gig's creator can do this")


@router.get("/", response_model=List[GigRead])
async def list_gigs(
    status_filter: Optional[GigStatus] = Query(None, alias="status"),
    category: Optional[str] = None,
    skip: int = 0,
    limit: int = Query(50, le=100),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_gig.list_gigs(db, status=status_filter, category=category, skip=skip, limit=limit)


@router.post("/", response_model=GigRead, status_code=status.HTTP_201_CREATED)
async def create_gig(
    gig_in: GigCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_gig.create_gig(user.id, gig_in, db)


@router.get("/{gig_id}", response_model=GigRead)
async def get_gig(
    gig_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await _get_gig(gig_id, db)


@router.patch("/{gig_id}", response_model=GigRead)
async def update_gig(
    gig_id: uuid.UUID,
    gig_in: GigUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    gig = await _get_gig(gig_id, db)
    _require_creator(gig, user)
    return await crud_gig.update_gig(gig, gig_in, db)


@router.delete("/{gig_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_gig(
    gig_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    gig = await _get_gig(gig_id, db)
    _require_creator(gig, user)
    await crud_gig.delete_gig(gig, db)


@router.post("/{gig_id}/apply", response_model=GigApplicationRead, status_code=status.HTTP_201_CREATED)
async def apply_to_gig(
    gig_id: uuid.UUID,
    application_in: GigApplicationCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    gig = await _get_gig(gig_id, db)
    if gig.status != GigStatus.open:
        raise HTTPException(status_code=400, detail="This gig is no longer accepting applications")
    if gig.created_by == user.id:
        raise HTTPException(status_code=400, detail="You cannot apply to your own gig")
    if await crud_gig.get_application(gig.id, user.id, db):
        raise HTTPException(status_code=400, detail="You have already applied to this gig")

    application = await crud_gig.create_application(gig.id, user.id, application_in.message, db)
    await notify(db, gig.created_by, "New gig application",
                 f"Someone applied to your gig \"{gig.title}\".", "system", "info", f"/gigs/{gig.id}")
    return application


@router.get("/{gig_id}/applications", response_model=List[GigApplicationRead])
async def list_gig_applications(
    gig_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    gig = await _get_gig(gig_id, db)
    _require_creator(gig, user)
    return await crud_gig.get_applications_for_gig(gig.id, db)


@router.post("/{gig_id}/assign/{application_id}", response_model=GigRead)
async def assign_gig(
    gig_id: uuid.UUID,
    application_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    gig = await _get_gig(gig_id, db)
    _require_creator(gig, user)
    if gig.status != GigStatus.open:
        raise HTTPException(status_code=400, detail="Only open gigs can be assigned")

    application = await crud_gig.get_application_by_id(application_id, gig.id, db)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")

    gig = await crud_gig.assign_gig(gig, application, db)
    await notify(db, application.applicant_id, "You got the gig!",
                 f"You've been assigned to \"{gig.title}\".", "system", "success", f"/gigs/{gig.id}")
    return gig
