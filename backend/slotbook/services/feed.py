"""
backend/slotbook/services/feed.py

Change feed: publish/subscribe capability used by the live read-models.

Topics:
- bookings: booking.created / booking.updated / booking.deleted
- calendar: calendar.updated (overrides document written)

Two implementations:
- RedisChangeFeed: Redis pub/sub, channel "slotbook:{topic}", shared across workers
- LocalChangeFeed: in-process fan-out (single worker, tests)

Read-models depend only on the ChangeFeed protocol, so either can be swapped
for a polling or queue-backed implementation.
"""

import json
import logging
import threading
import time
from functools import lru_cache
from typing import Callable, Protocol

from redis import Redis

logger = logging.getLogger(__name__)

BOOKINGS_TOPIC = "bookings"
CALENDAR_TOPIC = "calendar"

CHANNEL_PREFIX = "slotbook"

Callback = Callable[[dict], None]
Unsubscribe = Callable[[], None]


class ChangeFeed(Protocol):
    def publish(self, topic: str, event: dict) -> None: ...

    def subscribe(self, topic: str, callback: Callback) -> Unsubscribe: ...


def make_event(event_type: str, payload: dict) -> dict:
    return {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }


class LocalChangeFeed:
    """In-process fan-out. Callbacks run synchronously on the publisher's thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Callback]] = {}

    def publish(self, topic: str, event: dict) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(topic, ()))

        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber failed on {topic} event {event.get('type')}")

    def subscribe(self, topic: str, callback: Callback) -> Unsubscribe:
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(topic, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))


class RedisChangeFeed:
    """
    Redis pub/sub feed.

    Publishing is fire-and-forget: the write it describes is already committed,
    so a Redis failure is logged and the request still succeeds. Each
    subscription owns a PubSub connection and a listener thread.
    """

    def __init__(self, redis: Redis, sleep_time: float = 0.1):
        self.redis = redis
        self.sleep_time = sleep_time

    def _channel(self, topic: str) -> str:
        return f"{CHANNEL_PREFIX}:{topic}"

    def publish(self, topic: str, event: dict) -> None:
        channel = self._channel(topic)
        try:
            receivers = self.redis.publish(channel, json.dumps(event))
            logger.info(f"Event published: {event.get('type')} → {channel} ({receivers} receivers)")
        except Exception as e:
            logger.error(f"Failed to publish {event.get('type')} to {channel}: {e}")

    def subscribe(self, topic: str, callback: Callback) -> Unsubscribe:
        channel = self._channel(topic)

        def handler(message: dict) -> None:
            raw = message.get("data")
            try:
                event = json.loads(raw)
            except (json.JSONDecodeError, TypeError):
                logger.error(f"Invalid JSON on {channel}: {str(raw)[:200]}")
                return
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber failed on {channel} event {event.get('type')}")

        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(**{channel: handler})
        worker = pubsub.run_in_thread(sleep_time=self.sleep_time, daemon=True)
        logger.info(f"Subscribed to {channel}")

        def unsubscribe() -> None:
            worker.stop()
            pubsub.close()
            logger.info(f"Unsubscribed from {channel}")

        return unsubscribe


@lru_cache
def get_change_feed() -> ChangeFeed:
    """Process-wide feed: Redis when configured, otherwise in-process."""
    from ..redis_client import redis_client

    if redis_client is not None:
        return RedisChangeFeed(redis_client)
    logger.warning("REDIS_URL not set, using in-process change feed")
    return LocalChangeFeed()
