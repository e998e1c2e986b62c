"""Claim notifications addressed to post owners."""
import logging

from sqlalchemy.orm import Session

from grubio.errors import NotFoundError, PermissionDeniedError
from grubio.models.notification import Notification, NotificationType
from grubio.models.post import Post
from grubio.realtime.live_query import live_queries, notifications_topic

logger = logging.getLogger(__name__)


def claim_message(actor_label: str, post_title: str) -> str:
    return f'{actor_label} claimed your "{post_title}"'


def add_claim_notification(db: Session, post: Post, actor_label: str) -> Notification:
    """Stage a claim notification for the post's owner in the caller's transaction.

    The caller commits and publishes ``notifications:{owner}``.
    """
    notification = Notification(
        user_id=post.user_id,
        type=NotificationType.claim,
        message=claim_message(actor_label, post.title),
        event_id=post.event_id,
        post_id=post.post_id,
        read=False,
    )
    db.add(notification)
    logger.info("Queued claim notification for %s on post %s", post.user_id, post.post_id)
    return notification


def list_notifications(db: Session, user_id: str) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .all()
    )


def count_unread(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
        .count()
    )


def mark_as_read(db: Session, notification_id: str, user_id: str) -> Notification:
    """Flip ``read`` to true. Only the recipient may do this."""
    notification = (
        db.query(Notification)
        .filter(Notification.notification_id == notification_id)
        .first()
    )
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.user_id != user_id:
        raise PermissionDeniedError("This notification belongs to another user.")
    if notification.read:
        return notification

    notification.read = True
    db.commit()
    db.refresh(notification)
    logger.info("Notification %s marked read by %s", notification_id, user_id)
    live_queries.publish(notifications_topic(user_id))
    return notification
