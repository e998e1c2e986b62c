"""Redis pub/sub fan-out for live queries across worker processes.

Each process runs its own LiveQueryHub. The bridge forwards every local
publish to one Redis channel and replays topics published by other
processes into the local hub, so a write served by one uvicorn worker
reaches subscribers held by another.
"""
import json
import logging
import uuid
from typing import Optional

import redis

from grubio.realtime.live_query import LiveQueryHub

logger = logging.getLogger(__name__)

CHANNEL = "grubio:live"


class RedisTopicBridge:

    def __init__(self, hub: LiveQueryHub, client: redis.Redis, channel: str = CHANNEL):
        self.hub = hub
        self.client = client
        self.channel = channel
        self.origin = uuid.uuid4().hex
        self._pubsub = None
        self._worker = None

    def start(self, sleep_time: float = 0.01) -> None:
        """Subscribe to the channel on a daemon thread and attach to the hub."""
        self._pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(**{self.channel: self._on_message})
        self._worker = self._pubsub.run_in_thread(sleep_time=sleep_time, daemon=True)
        self.hub.attach_bridge(self)
        logger.info("Live query bridge %s listening on '%s'", self.origin[:8], self.channel)

    def stop(self) -> None:
        self.hub.attach_bridge(None)
        if self._worker is not None:
            self._worker.stop()
            self._worker = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None

    def forward(self, topic: str) -> None:
        """Announce ``topic`` to the other processes. The write itself already committed."""
        payload = json.dumps({"topic": topic, "origin": self.origin})
        try:
            self.client.publish(self.channel, payload)
        except redis.RedisError as exc:
            logger.warning("Could not forward '%s' to Redis: %s", topic, exc)

    def _on_message(self, message: dict) -> None:
        topic = self._parse(message.get("data"))
        if topic is None:
            return
        try:
            self.hub.publish_local(topic)
        except Exception:
            logger.exception("Replaying '%s' from Redis failed", topic)

    def _parse(self, data) -> Optional[str]:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            payload = json.loads(data)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed live query message: %r", data)
            return None
        if not isinstance(payload, dict) or payload.get("origin") == self.origin:
            return None
        return payload.get("topic")


def start_bridge(hub: LiveQueryHub, redis_url: str) -> RedisTopicBridge:
    bridge = RedisTopicBridge(hub, redis.Redis.from_url(redis_url, decode_responses=True))
    bridge.start()
    return bridge
