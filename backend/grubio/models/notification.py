"""Notification ORM model."""
import enum
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum as SAEnum

from grubio.database import Base
from grubio.models.user import utcnow


class NotificationType(str, enum.Enum):
    claim = "claim"


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)  # recipient
    type = Column(SAEnum(NotificationType), nullable=False, default=NotificationType.claim)
    message = Column(Text, nullable=False)
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    post_id = Column(String(36), ForeignKey("posts.post_id"), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
