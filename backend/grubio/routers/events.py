"""Event API routes: creation, joining, sharing, analytics, posts."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from grubio.database import get_db
from grubio.dependencies import get_current_user
from grubio.models.user import User
from grubio.schemas.analytics import EventAnalytics
from grubio.schemas.event import EventCreate, EventOut, JoinByCodeRequest, JoinByQRRequest, JoinEventOut, ShareOut
from grubio.schemas.post import PostCreate, PostOut
from grubio.services import analytics_service, event_service, post_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Create an event; the caller becomes organizer and first attendee."""
    return event_service.create_event(
        db=db,
        title=payload.title,
        description=payload.description,
        date=payload.date,
        created_by=user.user_id,
    )


@router.get("/", response_model=list[EventOut])
def list_my_events(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Events the caller attends."""
    return event_service.list_events_for_user(db, user.user_id)


@router.post("/join", response_model=JoinEventOut)
def join_by_code(payload: JoinByCodeRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    result = event_service.join_event_by_code(db, payload.join_code, user.user_id)
    return JoinEventOut(event=result.event, already_joined=result.already_joined, message=result.message)


@router.post("/join/qr", response_model=JoinEventOut)
def join_by_qr(payload: JoinByQRRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    result = event_service.join_event_by_qr(db, payload.payload, user.user_id)
    return JoinEventOut(event=result.event, already_joined=result.already_joined, message=result.message)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return event_service.require_attendee(db, event_id, user.user_id)


@router.get("/{event_id}/share", response_model=ShareOut)
def share_event(event_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Join code, QR payload and share text for inviting others."""
    event = event_service.require_attendee(db, event_id, user.user_id)
    return ShareOut(**event_service.share_event(event))


@router.get("/{event_id}/analytics", response_model=EventAnalytics)
def get_analytics(event_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    event = event_service.require_attendee(db, event_id, user.user_id)
    posts = post_service.list_all_posts(db, event_id)
    return analytics_service.compute_event_analytics(posts, attendee_count=len(event.attendees))


@router.post("/{event_id}/posts", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(
    event_id: str,
    payload: PostCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return post_service.create_post(
        db=db,
        event_id=event_id,
        user=user,
        title=payload.title,
        description=payload.description,
        location=payload.location,
        image_url=payload.image_url,
    )


@router.get("/{event_id}/posts", response_model=list[PostOut])
def list_posts(
    event_id: str,
    include_completed: bool = Query(False),
    q: Optional[str] = Query(None, description="Case-insensitive search over title, description, location"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Active feed by default; ``include_completed`` returns every post."""
    event_service.require_attendee(db, event_id, user.user_id)
    if include_completed:
        posts = post_service.list_all_posts(db, event_id)
    else:
        posts = post_service.list_active_posts(db, event_id)
    return post_service.search_posts(posts, q)
