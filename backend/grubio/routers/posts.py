"""Post claim lifecycle routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grubio.database import get_db
from grubio.dependencies import get_current_user
from grubio.models.user import User
from grubio.schemas.post import PostOut
from grubio.services import post_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{post_id}/claim", response_model=PostOut)
def claim_post(post_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Claim an unclaimed post; 409 if someone else holds it."""
    return post_service.claim_post(db, post_id, user)


@router.delete("/{post_id}/claim", response_model=PostOut)
def unclaim_post(post_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return post_service.unclaim_post(db, post_id, user)


@router.post("/{post_id}/claim/toggle", response_model=PostOut)
def toggle_claim(post_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return post_service.toggle_claim(db, post_id, user)


@router.post("/{post_id}/complete", response_model=PostOut)
def complete_post(post_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Owner retires the post from the active feed (kept for analytics)."""
    return post_service.complete_post(db, post_id, user)
