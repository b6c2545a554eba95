# app/schemas/notification.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid


class NotificationBase(BaseModel):
    title: str
    message: str
    type: str
    level: str = "info"
    link: Optional[str] = None


class NotificationCreate(NotificationBase):
    user_id: uuid.UUID


class NotificationRead(NotificationBase):
    id: uuid.UUID
    user_id: uuid.UUID
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
