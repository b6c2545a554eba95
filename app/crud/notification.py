# app/crud/notification.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, desc, func
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate
from typing import List, Optional
import uuid


async def create_notification(db: AsyncSession, notification: NotificationCreate) -> Notification:
    db_notification = Notification(**notification.dict())
    db.add(db_notification)
    await db.commit()
    await db.refresh(db_notification)
    return db_notification


async def get_notifications_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = 50
) -> List[Notification]:
    """Newest first, optionally unread only"""
    query = select(Notification).filter(Notification.user_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read == False)

    query = query.order_by(desc(Notification.created_at)).limit(limit)

    result = await db.execute(query)
    return result.scalars().all()


async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read == False)
    )
    return result.scalar_one() or 0


async def mark_notification_as_read(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Notification]:
    """Mark a notification as read, ensuring it belongs to the specified user"""
    result = await db.execute(
        select(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
    )
    notification = result.scalars().first()

    if notification:
        notification.is_read = True
        await db.commit()
        await db.refresh(notification)
    return notification


async def mark_all_notifications_as_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read == False)
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount


async def delete_notification(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    result = await db.execute(
        delete(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
    )
    await db.commit()
    return result.rowcount > 0
