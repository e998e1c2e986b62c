"""User API routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grubio.database import get_db
from grubio.dependencies import get_current_user
from grubio.models.user import User
from grubio.schemas.user import UserOut
from grubio.services import identity_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    """Fetch a single user, e.g. to resolve a display name."""
    return identity_service.get_user(db, user_id)
