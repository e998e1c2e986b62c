"""Tests for fanning live queries out across processes through Redis."""
import json

import pytest
import redis

from grubio.realtime.live_query import LiveQueryHub
from grubio.realtime.redis_bridge import CHANNEL, RedisTopicBridge


class InMemoryRedis:
    """Synchronous stand-in for the redis-py publish/pubsub calls the bridge makes."""

    def __init__(self):
        self.handlers: dict[str, list] = {}
        self.published: list[tuple[str, str]] = []
        self.fail_publish = False

    def publish(self, channel, message):
        if self.fail_publish:
            raise redis.ConnectionError("connection refused")
        self.published.append((channel, message))
        for handler in list(self.handlers.get(channel, ())):
            handler({"type": "message", "channel": channel, "data": message})
        return len(self.handlers.get(channel, ()))

    def pubsub(self, ignore_subscribe_messages=False):
        return _InMemoryPubSub(self)


class _InMemoryPubSub:

    def __init__(self, server):
        self.server = server
        self.subscribed = {}

    def subscribe(self, **handlers):
        for channel, handler in handlers.items():
            self.server.handlers.setdefault(channel, []).append(handler)
            self.subscribed[channel] = handler

    def run_in_thread(self, sleep_time=0.0, daemon=False):
        return _Worker()

    def close(self):
        for channel, handler in self.subscribed.items():
            self.server.handlers[channel].remove(handler)
        self.subscribed = {}


class _Worker:

    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


@pytest.fixture
def server():
    return InMemoryRedis()


@pytest.fixture
def workers(session_factory, server):
    """Two hubs, as two uvicorn workers would hold, joined through one Redis."""
    hubs = [LiveQueryHub(session_factory), LiveQueryHub(session_factory)]
    bridges = [RedisTopicBridge(hub, server) for hub in hubs]
    for bridge in bridges:
        bridge.start()
    yield hubs, bridges
    for bridge in bridges:
        bridge.stop()
    for hub in hubs:
        hub.clear()


class TestRedisTopicBridge:

    def test_publish_reaches_other_worker(self, workers):
        (first, second), _ = workers
        here, there = [], []
        first.subscribe("posts:e1", lambda db: "snapshot", here.append)
        second.subscribe("posts:e1", lambda db: "snapshot", there.append)

        first.publish("posts:e1")

        assert len(here) == 2
        assert len(there) == 2

    def test_own_messages_are_not_replayed(self, workers, server):
        (first, _), (bridge, _) = workers
        snapshots = []
        first.subscribe("posts:e1", lambda db: "snapshot", snapshots.append)

        first.publish("posts:e1")

        assert len(snapshots) == 2
        assert json.loads(server.published[0][1]) == {"topic": "posts:e1", "origin": bridge.origin}
        assert server.published[0][0] == CHANNEL

    def test_malformed_messages_are_ignored(self, workers, server):
        (_, second), _ = workers
        snapshots = []
        second.subscribe("posts:e1", lambda db: "snapshot", snapshots.append)

        server.publish(CHANNEL, "not json")
        server.publish(CHANNEL, json.dumps(["posts:e1"]))
        server.publish(CHANNEL, json.dumps({"topic": "posts:e1", "origin": "elsewhere"}).encode("utf-8"))

        assert len(snapshots) == 2

    def test_redis_outage_does_not_fail_the_write(self, workers, server):
        (first, _), _ = workers
        snapshots = []
        first.subscribe("posts:e1", lambda db: "snapshot", snapshots.append)
        server.fail_publish = True

        assert first.publish("posts:e1") == 1
        assert len(snapshots) == 2

    def test_stop_detaches(self, session_factory, server):
        hub = LiveQueryHub(session_factory)
        bridge = RedisTopicBridge(hub, server)
        bridge.start()
        assert hub.bridge is bridge

        bridge.stop()

        assert hub.bridge is None
        assert server.handlers[CHANNEL] == []
        hub.publish("posts:e1")
        assert server.published == []
