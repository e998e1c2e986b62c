"""Event ORM model."""
import uuid

from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from grubio.database import Base
from grubio.models.user import utcnow

JOIN_CODE_LENGTH = 6


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    # Unique index turns allocation into insert-if-absent.
    join_code = Column(String(JOIN_CODE_LENGTH), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    attendees = relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventAttendee.joined_at",
    )
    posts = relationship("Post", back_populates="event", cascade="all, delete-orphan")

    @property
    def attendee_ids(self) -> list[str]:
        return [a.user_id for a in self.attendees]

    def has_attendee(self, user_id: str) -> bool:
        return any(a.user_id == user_id for a in self.attendees)
