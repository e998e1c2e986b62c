"""Food posts and the claim lifecycle.

States: Unclaimed <-> Claimed(by U) -> Completed (terminal, owner only).

Claim and unclaim are conditional updates keyed on the current ``claimed_by``
value, so two simultaneous claimants cannot both win: the loser's update
matches zero rows and gets a ClaimConflictError.
"""
import logging
from typing import Iterable, Optional, TypeVar

from sqlalchemy.orm import Session

from grubio.errors import (
    ClaimConflictError,
    NotFoundError,
    PermissionDeniedError,
    PostCompletedError,
    ValidationError,
)
from grubio.models.post import Post
from grubio.models.user import User
from grubio.realtime.live_query import live_queries, notifications_topic, posts_topic
from grubio.services import notification_service
from grubio.services.event_service import get_event

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"

P = TypeVar("P")


def claimant_label(display_name: Optional[str], email: Optional[str]) -> str:
    """Display name, falling back to email, falling back to "Anonymous"."""
    return display_name or email or ANONYMOUS


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def create_post(
    db: Session,
    event_id: str,
    user: User,
    title: str,
    description: str,
    location: Optional[str] = None,
    image_url: Optional[str] = None,
) -> Post:
    """Offer a food item at an event. Only attendees may post."""
    event = get_event(db, event_id)
    if not event.has_attendee(user.user_id):
        raise PermissionDeniedError("Join this event before posting food.")

    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise ValidationError("Please fill in title and description.")

    post = Post(
        event_id=event.event_id,
        title=title,
        description=description,
        location=_clean(location),
        image_url=_clean(image_url),
        user_id=user.user_id,
        user_name=_clean(user.display_name),
        user_email=user.email,
        claimed_by=None,
        completed=False,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("User %s posted '%s' (%s) to event %s", user.user_id, title, post.post_id, event_id)
    live_queries.publish(posts_topic(event_id))
    return post


def get_post(db: Session, post_id: str) -> Post:
    post = db.query(Post).filter(Post.post_id == post_id).first()
    if not post:
        raise NotFoundError(f"No post found for id: {post_id}")
    return post


def list_active_posts(db: Session, event_id: str) -> list[Post]:
    """The live feed: posts not yet completed, newest first."""
    return (
        db.query(Post)
        .filter(Post.event_id == event_id, Post.completed == False)  # noqa: E712
        .order_by(Post.created_at.desc())
        .all()
    )


def list_all_posts(db: Session, event_id: str) -> list[Post]:
    """Every post ever created for the event, newest first."""
    return (
        db.query(Post)
        .filter(Post.event_id == event_id)
        .order_by(Post.created_at.desc())
        .all()
    )


def search_posts(posts: Iterable[P], query: Optional[str]) -> list[P]:
    """Case-insensitive substring match on title, description and location."""
    posts = list(posts)
    needle = (query or "").strip().lower()
    if not needle:
        return posts
    return [
        p for p in posts
        if needle in (p.title or "").lower()
        or needle in (p.description or "").lower()
        or needle in (p.location or "").lower()
    ]


def _check_claimable(post: Post, user: User) -> None:
    if not post.event.has_attendee(user.user_id):
        raise PermissionDeniedError("Join this event before claiming food.")
    if post.user_id == user.user_id:
        raise PermissionDeniedError("You can't claim your own post.")
    if post.completed:
        raise PostCompletedError("This post has been completed.")


def _conflict(post: Post) -> ClaimConflictError:
    holder = claimant_label(post.claimed_by_name, post.claimed_by_email)
    return ClaimConflictError(f"Already claimed by {holder}.")


def claim_post(db: Session, post_id: str, user: User) -> Post:
    """Claim an unclaimed post and notify its owner."""
    post = get_post(db, post_id)
    _check_claimable(post, user)
    if post.claimed_by == user.user_id:
        return post
    if post.claimed_by is not None:
        raise _conflict(post)

    updated = (
        db.query(Post)
        .filter(
            Post.post_id == post_id,
            Post.claimed_by.is_(None),
            Post.completed == False,  # noqa: E712
        )
        .update(
            {
                Post.claimed_by: user.user_id,
                Post.claimed_by_name: _clean(user.display_name),
                Post.claimed_by_email: user.email,
            },
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(post)
        if post.completed:
            raise PostCompletedError("This post has been completed.")
        raise _conflict(post)

    notification_service.add_claim_notification(
        db, post=post, actor_label=claimant_label(_clean(user.display_name), user.email)
    )
    db.commit()
    db.refresh(post)
    logger.info("User %s claimed post %s", user.user_id, post_id)
    live_queries.publish(posts_topic(post.event_id))
    live_queries.publish(notifications_topic(post.user_id))
    return post


def unclaim_post(db: Session, post_id: str, user: User) -> Post:
    """Release a claim. Only the current claimant may do this; no notification."""
    post = get_post(db, post_id)
    if post.completed:
        raise PostCompletedError("This post has been completed.")
    if post.claimed_by != user.user_id:
        raise PermissionDeniedError("Only the current claimant can unclaim this post.")

    updated = (
        db.query(Post)
        .filter(
            Post.post_id == post_id,
            Post.claimed_by == user.user_id,
            Post.completed == False,  # noqa: E712
        )
        .update(
            {Post.claimed_by: None, Post.claimed_by_name: None, Post.claimed_by_email: None},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(post)
        if post.completed:
            raise PostCompletedError("This post has been completed.")
        raise PermissionDeniedError("Only the current claimant can unclaim this post.")

    db.commit()
    db.refresh(post)
    logger.info("User %s unclaimed post %s", user.user_id, post_id)
    live_queries.publish(posts_topic(post.event_id))
    return post


def toggle_claim(db: Session, post_id: str, user: User) -> Post:
    """Unclaim when the caller holds the claim, otherwise claim."""
    post = get_post(db, post_id)
    if post.claimed_by == user.user_id:
        return unclaim_post(db, post_id, user)
    return claim_post(db, post_id, user)


def complete_post(db: Session, post_id: str, user: User) -> Post:
    """Retire a post from the active feed. Owner only; cannot be undone."""
    post = get_post(db, post_id)
    if post.user_id != user.user_id:
        raise PermissionDeniedError("Only the poster can mark this post complete.")
    if post.completed:
        return post

    post.completed = True
    db.commit()
    db.refresh(post)
    logger.info("Post %s marked complete by %s", post_id, user.user_id)
    live_queries.publish(posts_topic(post.event_id))
    return post
