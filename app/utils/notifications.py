# app/utils/notifications.py
from typing import Dict, List, Any, Optional
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas.notification import NotificationCreate
from app.crud.notification import create_notification
from app.models.notification import Notification
import uuid
from fastapi import WebSocket
import logging

logger = logging.getLogger(__name__)

# Store active WebSocket connections by user_id
active_connections: Dict[uuid.UUID, List[WebSocket]] = {}


async def notify(
    db: AsyncSession,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: str,
    level: str = "info",
    link: Optional[str] = None,
) -> Notification:
    """Persist a notification and push it to any open sockets of the user."""
    notification = NotificationCreate(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        level=level,
        link=link,
    )
    notification_obj = await create_notification(db, notification)
    await send_realtime_notification(user_id, notification_obj)
    return notification_obj


async def notify_guardrail(db: AsyncSession, user_id: uuid.UUID, category: str, level: str,
                           spent: float, limit_amount: float, period: str) -> Notification:
    period_name = "week" if period == "weekly" else "month"
    if level == "exceeded":
        title = "Spending limit exceeded"
        message = (f"You've spent ${spent:.2f} on {category} this {period_name}, "
                   f"at or over your ${limit_amount:.2f} limit.")
        notification_level = "alert"
    else:
        title = "Approaching spending limit"
        message = (f"You've used {spent / limit_amount * 100:.0f}% of your ${limit_amount:.2f} "
                   f"{category} limit this {period_name}.")
        notification_level = "warning"
    return await notify(db, user_id, title, message, "guardrail", notification_level, "/expenses")


async def notify_goal_completed(db: AsyncSession, user_id: uuid.UUID, goal_name: str, target: float) -> Notification:
    return await notify(
        db,
        user_id,
        "Goal reached! 🎉",
        f"Congratulations! You've reached your goal \"{goal_name}\" of ${target:.2f}.",
        "goal",
        "success",
        "/goals",
    )


async def notify_subscription_change(db: AsyncSession, user_id: uuid.UUID, tier: str) -> Notification:
    if tier == "pro":
        return await notify(db, user_id, "Welcome to Stackr Pro",
                            "Your Pro subscription is active. AI advice and bank sync are unlocked.",
                            "subscription", "success", "/settings")
    return await notify(db, user_id, "Subscription ended",
                        "Your Pro subscription has ended and your account is back on the free plan.",
                        "subscription", "warning", "/settings")


async def notify_invoice_paid(db: AsyncSession, user_id: uuid.UUID, invoice_number: str, total: float) -> Notification:
    return await notify(db, user_id, "Invoice paid",
                        f"Invoice {invoice_number} for ${total:.2f} has been marked as paid.",
                        "invoice", "success", "/invoices")


def connect_user(websocket: WebSocket, user_id: uuid.UUID):
    """Register a WebSocket connection for a user"""
    if user_id not in active_connections:
        active_connections[user_id] = []
    active_connections[user_id].append(websocket)
    logger.info(f"User {user_id} connected. Total connections: {len(active_connections[user_id])}")


def disconnect_user(websocket: WebSocket, user_id: uuid.UUID):
    if user_id in active_connections:
        if websocket in active_connections[user_id]:
            active_connections[user_id].remove(websocket)

        if not active_connections[user_id]:
            del active_connections[user_id]

    logger.info(f"User {user_id} disconnected. Remaining connections: {len(active_connections.get(user_id, []))}")


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    created_at = notification.created_at or datetime.utcnow()
    return {
        "id": str(notification.id),
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "level": notification.level,
        "link": notification.link,
        "is_read": bool(notification.is_read),
        "created_at": created_at.isoformat(),
    }


async def send_realtime_notification(user_id: uuid.UUID, notification: Notification):
    """Send a notification to a user via WebSocket if they're connected"""
    if user_id not in active_connections:
        return

    payload = {"type": "notification", "data": serialize_notification(notification)}

    dead_connections = []
    for websocket in active_connections[user_id]:
        try:
            await websocket.send_json(payload)
        except Exception as e:
            logger.error(f"Failed to send to websocket: {str(e)}")
            dead_connections.append(websocket)

    for dead in dead_connections:
        disconnect_user(dead, user_id)
