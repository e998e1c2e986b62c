"""Live query definitions for each feed a client can watch.

Each factory returns a query callable that runs inside the hub's session and
returns plain schema objects, so snapshots outlive the session.
"""
from typing import Optional

from sqlalchemy.orm import Session

from grubio.realtime.live_query import Guard, Query
from grubio.schemas.event import EventOut
from grubio.schemas.notification import NotificationOut, UnreadCountOut
from grubio.schemas.post import PostOut
from grubio.services import analytics_service, event_service, identity_service, notification_service, post_service


def session_guard(token: Optional[str]) -> Guard:
    """Fail the live query once ``token`` stops resolving to a signed-in user."""
    def _guard(db: Session) -> None:
        identity_service.resolve_session(db, token)
    return _guard


def event_feed(event_id: str) -> Query:
    def _query(db: Session) -> EventOut:
        return EventOut.model_validate(event_service.get_event(db, event_id))
    return _query


def active_posts_feed(event_id: str) -> Query:
    def _query(db: Session) -> list[PostOut]:
        return [PostOut.model_validate(p) for p in post_service.list_active_posts(db, event_id)]
    return _query


def all_posts_feed(event_id: str) -> Query:
    def _query(db: Session) -> list[PostOut]:
        return [PostOut.model_validate(p) for p in post_service.list_all_posts(db, event_id)]
    return _query


def analytics_feed(event_id: str) -> Query:
    def _query(db: Session):
        event = event_service.get_event(db, event_id)
        posts = post_service.list_all_posts(db, event_id)
        return analytics_service.compute_event_analytics(posts, attendee_count=len(event.attendees))
    return _query


def user_events_feed(user_id: str) -> Query:
    def _query(db: Session) -> list[EventOut]:
        return [EventOut.model_validate(e) for e in event_service.list_events_for_user(db, user_id)]
    return _query


def notifications_feed(user_id: str) -> Query:
    def _query(db: Session) -> list[NotificationOut]:
        return [NotificationOut.model_validate(n) for n in notification_service.list_notifications(db, user_id)]
    return _query


def unread_count_feed(user_id: str) -> Query:
    def _query(db: Session) -> UnreadCountOut:
        return UnreadCountOut(unread=notification_service.count_unread(db, user_id))
    return _query
