"""Client-side user session.

A UserSession owns one signed-in identity and every live subscription opened
through it. Signing out releases the subscriptions first and only then
revokes the identity, so no listener can fire against a dead session. If a
live query reports that the session is gone anyway (revoked elsewhere), the
session tears itself down and calls ``on_session_lost`` so the caller can
return to sign-in instead of rendering stale protected data.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from grubio.errors import GrubioError, PermissionDeniedError
from grubio.realtime import feeds
from grubio.realtime.live_query import (
    LiveQueryHub,
    LiveSubscription,
    event_topic,
    live_queries,
    notifications_topic,
    posts_topic,
    user_events_topic,
)
from grubio.realtime.registry import SubscriptionRegistry
from grubio.schemas.user import UserIdentity
from grubio.services import event_service, identity_service

logger = logging.getLogger(__name__)

SessionLostCallback = Callable[[GrubioError], None]


class UserSession:

    def __init__(
        self,
        identity: UserIdentity,
        session_factory: Callable[[], Session],
        hub: LiveQueryHub = live_queries,
        on_session_lost: Optional[SessionLostCallback] = None,
    ):
        self.identity: Optional[UserIdentity] = identity
        self.registry = SubscriptionRegistry()
        self._session_factory = session_factory
        self._hub = hub
        self._on_session_lost = on_session_lost
        self._token = identity.token

    @property
    def signed_in(self) -> bool:
        return self.identity is not None

    @property
    def user_id(self) -> str:
        if self.identity is None:
            raise PermissionDeniedError("This session has been signed out.")
        return self.identity.user_id

    def _watch(self, topic: str, query, on_snapshot, event_id: Optional[str] = None) -> LiveSubscription:
        if not self.signed_in:
            raise PermissionDeniedError("This session has been signed out.")
        if event_id is not None:
            with self._session_factory() as db:
                event_service.require_attendee(db, event_id, self.user_id)
        subscription = self._hub.subscribe(
            topic,
            query,
            on_snapshot,
            on_error=self._on_listener_error,
            guard=feeds.session_guard(self._token),
            deliver_initial=False,
        )
        # Registered before the first delivery so a failing first snapshot is released too.
        self.registry.register(subscription)
        subscription.refresh()
        return subscription

    def watch_event(self, event_id: str, on_snapshot) -> LiveSubscription:
        return self._watch(event_topic(event_id), feeds.event_feed(event_id), on_snapshot, event_id=event_id)

    def watch_active_posts(self, event_id: str, on_snapshot) -> LiveSubscription:
        return self._watch(posts_topic(event_id), feeds.active_posts_feed(event_id), on_snapshot, event_id=event_id)

    def watch_all_posts(self, event_id: str, on_snapshot) -> LiveSubscription:
        return self._watch(posts_topic(event_id), feeds.all_posts_feed(event_id), on_snapshot, event_id=event_id)

    def watch_analytics(self, event_id: str, on_snapshot) -> LiveSubscription:
        return self._watch(posts_topic(event_id), feeds.analytics_feed(event_id), on_snapshot, event_id=event_id)

    def watch_my_events(self, on_snapshot) -> LiveSubscription:
        return self._watch(user_events_topic(self.user_id), feeds.user_events_feed(self.user_id), on_snapshot)

    def watch_notifications(self, on_snapshot) -> LiveSubscription:
        return self._watch(notifications_topic(self.user_id), feeds.notifications_feed(self.user_id), on_snapshot)

    def watch_unread_count(self, on_snapshot) -> LiveSubscription:
        return self._watch(notifications_topic(self.user_id), feeds.unread_count_feed(self.user_id), on_snapshot)

    def _on_listener_error(self, exc: GrubioError) -> None:
        if not isinstance(exc, PermissionDeniedError) or self.identity is None:
            return
        logger.warning("Listener lost permission for %s; ending session", self._token[:8])
        self.registry.release_all()
        self.identity = None
        if self._on_session_lost is not None:
            self._on_session_lost(exc)

    def sign_out(self) -> None:
        """Release every live subscription, then revoke the identity."""
        self.registry.release_all()
        if self.identity is None:
            return
        with self._session_factory() as db:
            identity_service.sign_out(db, self._token)
        self.identity = None

    def __enter__(self) -> "UserSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.sign_out()


def open_session(
    session_factory: Callable[[], Session],
    email: str,
    password: str,
    hub: LiveQueryHub = live_queries,
    on_session_lost: Optional[SessionLostCallback] = None,
) -> UserSession:
    """Sign in and return a session to be used as a context manager."""
    with session_factory() as db:
        identity = identity_service.sign_in(db, email, password)
    return UserSession(identity, session_factory, hub=hub, on_session_lost=on_session_lost)
