"""AuthSession ORM model: opaque bearer tokens handed out on sign-in."""
import secrets

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from grubio.database import Base
from grubio.models.user import utcnow


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String(64), primary_key=True, default=lambda: secrets.token_urlsafe(32))
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User")

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None
