# app/crud/gig.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.gig import Gig, GigApplication, GigStatus
from app.schemas.gig import GigCreate, GigUpdate
from typing import List, Optional
import uuid


async def list_gigs(db: AsyncSession, status: Optional[GigStatus] = None, category: Optional[str] = None,
                    skip: int = 0, limit: int = 50) -> List[Gig]:
    query = select(Gig)
    if status is not None:
        query = query.where(Gig.status == status)
    if category:
        query = query.where(Gig.category == category)
    result = await db.execute(query.order_by(Gig.created_at.desc()).offset(skip).limit(limit))
    return result.scalars().all()


async def get_gig_by_id(gig_id: uuid.UUID, db: AsyncSession) -> Optional[Gig]:
    result = await db.execute(select(Gig).where(Gig.id == gig_id))
    return result.scalar_one_or_none()


async def create_gig(user_id: uuid.UUID, gig_in: GigCreate, db: AsyncSession) -> Gig:
    gig = Gig(**gig_in.dict(), created_by=user_id)
    db.add(gig)
    await db.commit()
    await db.refresh(gig)
    return gig


async def update_gig(gig: Gig, gig_in: GigUpdate, db: AsyncSession) -> Gig:
    for field, value in gig_in.dict(exclude_unset=True).items():
        if value is not None or field == "location":
            setattr(gig, field, value)
    db.add(gig)
    await db.commit()
    await db.refresh(gig)
    return gig


async def delete_gig(gig: Gig, db: AsyncSession) -> None:
    await db.delete(gig)
    await db.commit()


async def get_application(gig_id: uuid.UUID, applicant_id: uuid.UUID, db: AsyncSession) -> Optional[GigApplication]:
    result = await db.execute(
        select(GigApplication).where(GigApplication.gig_id == gig_id, GigApplication.applicant_id == applicant_id)
    )
    return result.scalar_one_or_none()


async def get_application_by_id(application_id: uuid.UUID, gig_id: uuid.UUID, db: AsyncSession) -> Optional[GigApplication]:
    result = await db.execute(
        select(GigApplication).where(GigApplication.id == application_id, GigApplication.gig_id == gig_id)
    )
    return result.scalar_one_or_none()


async def get_applications_for_gig(gig_id: uuid.UUID, db: AsyncSession) -> List[GigApplication]:
    result = await db.execute(
        select(GigApplication).where(GigApplication.gig_id == gig_id).order_by(GigApplication.created_at)
    )
    return result.scalars().all()


async def create_application(gig_id: uuid.UUID, applicant_id: uuid.UUID, message: Optional[str],
                             db: AsyncSession) -> GigApplication:
    application = GigApplication(gig_id=gig_id, applicant_id=applicant_id, message=message)
    db.add(application)
    await db.commit()
    await db.refresh(application)
    return application


async def assign_gig(gig: Gig, application: GigApplication, db: AsyncSession) -> Gig:
    """Accept one application, reject the rest and mark the gig assigned."""
    for other in await get_applications_for_gig(gig.id, db):
        other.status = "accepted" if other.id == application.id else "rejected"
        db.add(other)
    gig.assigned_to = application.applicant_id
    gig.status = GigStatus.assigned
    db.add(gig)
    await db.commit()
    await db.refresh(gig)
    return gig
