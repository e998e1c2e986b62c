"""Notification routes, including the live SSE feed."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from grubio.database import get_db
from grubio.dependencies import get_current_user, get_session_token
from grubio.models.user import User
from grubio.realtime import feeds
from grubio.realtime.live_query import live_queries, notifications_topic
from grubio.realtime.sse import stream_live_query
from grubio.schemas.notification import NotificationOut, UnreadCountOut
from grubio.services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[NotificationOut])
def list_notifications(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return notification_service.list_notifications(db, user.user_id)


@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return UnreadCountOut(unread=notification_service.count_unread(db, user.user_id))


@router.post("/{notification_id}/read", response_model=NotificationOut)
def mark_read(notification_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return notification_service.mark_as_read(db, notification_id, user.user_id)


@router.get("/stream")
def stream_notifications(
    token: Optional[str] = Depends(get_session_token),
    user: User = Depends(get_current_user),
):
    """SSE: a ``snapshot`` event with the full list on every change."""
    logger.info("Opening notification stream for %s", user.user_id)
    return StreamingResponse(
        stream_live_query(
            live_queries,
            notifications_topic(user.user_id),
            feeds.notifications_feed(user.user_id),
            guard=feeds.session_guard(token),
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
