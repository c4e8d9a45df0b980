"""Read-through cache of client records in Redis."""

import json
import logging
from typing import Optional

from redis import Redis

logger = logging.getLogger(__name__)

_CLIENT_KEY_PREFIX = "cache:clients"


class ClientCache:
    def __init__(self, redis: Redis, ttl_seconds: int = 300):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, client_id: str) -> str:
        return f"{_CLIENT_KEY_PREFIX}:{client_id}"

    def get(self, client_id: str) -> Optional[dict]:
        try:
            raw = self.redis.get(self._key(client_id))
        except Exception:
            logger.exception("Client cache read failed for %s", client_id)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Invalid JSON in client cache: %s", client_id)
            return None

    def store(self, record: dict) -> None:
        try:
            self.redis.setex(self._key(record["id"]), self.ttl_seconds, json.dumps(record))
        except Exception:
            logger.exception("Failed to cache client %s", record.get("id"))

    def invalidate(self, client_id: str) -> None:
        try:
            self.redis.delete(self._key(client_id))
        except Exception:
            logger.exception("Failed to invalidate cached client %s", client_id)
