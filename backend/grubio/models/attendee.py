"""EventAttendee ORM model: the event's attendee set."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from grubio.database import Base
from grubio.models.user import utcnow


class EventAttendee(Base):
    __tablename__ = "event_attendees"

    # Composite key gives set semantics: a user appears at most once per event.
    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="attendees")
