"""Pydantic schemas for Notifications."""
from datetime import datetime
from pydantic import BaseModel


class NotificationOut(BaseModel):
    notification_id: str
    user_id: str
    type: str
    message: str
    event_id: str
    post_id: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountOut(BaseModel):
    unread: int
