# backend/slotbook/redis_client.py
"""
Shared Redis client.

Redis is optional: without REDIS_URL the service runs with the in-process
change feed and without the client-record cache.
"""

from redis import Redis

from .config import get_settings

settings = get_settings()

redis_client: Redis | None = (
    Redis.from_url(settings.redis_url, decode_responses=True)
    if settings.redis_url
    else None
)
