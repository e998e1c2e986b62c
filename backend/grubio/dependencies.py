"""Shared FastAPI dependencies."""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from grubio.database import get_db
from grubio.models.user import User
from grubio.services import identity_service


def get_session_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the bearer token from the Authorization header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    return identity_service.resolve_session(db, token)
