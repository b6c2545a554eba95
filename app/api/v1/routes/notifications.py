# app/api/v1/routes/notifications.py
import uuid
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_user_from_token
from app.core.auth import User
from app.core.database import get_async_session
from app.crud.notification import (
    get_notifications_for_user,
    get_unread_count,
    mark_notification_as_read,
    mark_all_notifications_as_read,
    delete_notification,
)
from app.schemas.notification import NotificationRead
from app.utils.notifications import connect_user, disconnect_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationRead])
async def get_user_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await get_notifications_for_user(db, current_user.id, unread_only, limit)


@router.get("/unread-count", response_model=int)
async def get_user_unread_count(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await get_unread_count(db, current_user.id)


@router.post("/read-all", response_model=int)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Returns how many notifications were marked"""
    return await mark_all_notifications_as_read(db, current_user.id)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_as_read(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    notification = await mark_notification_as_read(db, notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.delete("/{notification_id}", status_code=204)
async def remove_notification(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    if not await delete_notification(db, notification_id, current_user.id):
        raise HTTPException(status_code=404, detail="Notification not found")


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
    db: AsyncSession = Depends(get_async_session),
):
    """WebSocket endpoint for real-time notifications"""
    try:
        user = await get_user_from_token(token, db)
    except HTTPException:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    await websocket.accept()
    connect_user(websocket, user.id)
    try:
        while True:
            await websocket.receive_text()
            await websocket.send_json({"status": "received", "timestamp": datetime.utcnow().isoformat()})
    except WebSocketDisconnect:
        pass
    finally:
        disconnect_user(websocket, user.id)
