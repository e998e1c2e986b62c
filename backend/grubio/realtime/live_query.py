"""In-process live queries.

A live query is a (topic, query) pair. Writers publish the topic after they
commit; the hub re-runs every query registered on that topic in a fresh
session and pushes the resulting snapshot to its subscriber. Snapshots are
delivered in publish order per subscription. There is no ordering across
topics, so two feeds over the same event may briefly disagree. Other worker
processes are reached through an attached bridge (see redis_bridge).
"""
import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grubio.database import SessionLocal
from grubio.errors import GrubioError, StoreError

logger = logging.getLogger(__name__)

Query = Callable[[Session], Any]
SnapshotCallback = Callable[[Any], None]
ErrorCallback = Callable[[GrubioError], None]
Guard = Callable[[Session], None]


def event_topic(event_id: str) -> str:
    return f"event:{event_id}"


def posts_topic(event_id: str) -> str:
    return f"posts:{event_id}"


def notifications_topic(user_id: str) -> str:
    return f"notifications:{user_id}"


def user_events_topic(user_id: str) -> str:
    return f"user-events:{user_id}"


class LiveSubscription:
    """Handle for one live query. ``cancel()`` stops all further deliveries."""

    def __init__(
        self,
        hub: "LiveQueryHub",
        topic: str,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        guard: Optional[Guard] = None,
    ):
        self.hub = hub
        self.topic = topic
        self._query = query
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._guard = guard
        self._delivery_lock = threading.RLock()
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self.hub._remove(self)

    def refresh(self) -> None:
        """Re-run the query and push the snapshot (or the failure)."""
        with self._delivery_lock:
            if not self.active:
                return
            try:
                with self.hub.session_factory() as db:
                    if self._guard is not None:
                        self._guard(db)
                    snapshot = self._query(db)
            except GrubioError as exc:
                self._report(exc)
                return
            except SQLAlchemyError as exc:
                self._report(StoreError(f"Live query on '{self.topic}' failed: {exc}"))
                return
            if not self.active:
                return
            try:
                self._on_snapshot(snapshot)
            except Exception:
                logger.exception("Snapshot listener on '%s' raised", self.topic)

    def _report(self, exc: GrubioError) -> None:
        logger.warning("Live query on '%s' failed: %s", self.topic, exc.message)
        if self._on_error is not None:
            self._on_error(exc)


class TopicBridge(Protocol):
    def forward(self, topic: str) -> None: ...


class LiveQueryHub:
    """Registry of live queries keyed by topic.

    With a bridge attached, every publish is also forwarded to the other
    processes serving the app, which deliver it through ``publish_local``.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory
        self.bridge: Optional[TopicBridge] = None
        self._subscriptions: dict[str, list[LiveSubscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def bind(self, session_factory: Callable[[], Session]) -> None:
        """Point the hub at another database (used by tests)."""
        self.session_factory = session_factory

    def attach_bridge(self, bridge: Optional[TopicBridge]) -> None:
        self.bridge = bridge

    def subscribe(
        self,
        topic: str,
        query: Query,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        guard: Optional[Guard] = None,
        deliver_initial: bool = True,
    ) -> LiveSubscription:
        """Register a live query and deliver its first snapshot.

        With ``deliver_initial=False`` the caller runs ``refresh()`` itself,
        after it has stored the handle.
        """
        subscription = LiveSubscription(self, topic, query, on_snapshot, on_error, guard)
        with self._lock:
            self._subscriptions[topic].append(subscription)
        logger.debug("Subscribed to '%s'", topic)
        if deliver_initial:
            subscription.refresh()
        return subscription

    def publish(self, topic: str) -> int:
        """Push fresh snapshots to every local subscriber of ``topic`` and forward it.

        Returns the number of local subscribers refreshed.
        """
        delivered = self.publish_local(topic)
        if self.bridge is not None:
            self.bridge.forward(topic)
        return delivered

    def publish_local(self, topic: str) -> int:
        with self._lock:
            targets = list(self._subscriptions.get(topic, ()))
        for subscription in targets:
            subscription.refresh()
        return len(targets)

    def active_count(self, topic: Optional[str] = None) -> int:
        with self._lock:
            if topic is not None:
                return len(self._subscriptions.get(topic, ()))
            return sum(len(subs) for subs in self._subscriptions.values())

    def clear(self) -> None:
        with self._lock:
            targets = [s for subs in self._subscriptions.values() for s in subs]
        for subscription in targets:
            subscription.cancel()

    def _remove(self, subscription: LiveSubscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(subscription.topic)
            if subs and subscription in subs:
                subs.remove(subscription)
                if not subs:
                    del self._subscriptions[subscription.topic]
        logger.debug("Unsubscribed from '%s'", subscription.topic)


live_queries = LiveQueryHub()
