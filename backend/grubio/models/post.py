"""Post ORM model: one food item offered at an event."""
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from grubio.database import Base
from grubio.models.user import utcnow


class Post(Base):
    __tablename__ = "posts"

    post_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(255), nullable=True)
    image_url = Column(String(1024), nullable=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    user_name = Column(String(100), nullable=True)
    user_email = Column(String(255), nullable=True)
    claimed_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    claimed_by_name = Column(String(100), nullable=True)
    claimed_by_email = Column(String(255), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="posts")

    @property
    def is_claimed(self) -> bool:
        return self.claimed_by is not None
