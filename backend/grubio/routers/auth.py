"""Identity API routes: sign-up, sign-in, sign-out."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from grubio.database import get_db
from grubio.dependencies import get_current_user, get_session_token
from grubio.models.user import User
from grubio.schemas.user import SignInRequest, SignUpRequest, UserIdentity, UserOut
from grubio.services import identity_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/signup", response_model=UserIdentity, status_code=status.HTTP_201_CREATED)
def sign_up(payload: SignUpRequest, db: Session = Depends(get_db)):
    """Create an account and its user document; returns a session token."""
    return identity_service.sign_up(db, payload.email, payload.password, payload.display_name)


@router.post("/signin", response_model=UserIdentity)
def sign_in(payload: SignInRequest, db: Session = Depends(get_db)):
    return identity_service.sign_in(db, payload.email, payload.password)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(token: Optional[str] = Depends(get_session_token), db: Session = Depends(get_db)):
    """Revoke the caller's token. Signing out twice is harmless."""
    if token:
        identity_service.sign_out(db, token)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
