"""
Redis cache client

Every call is best-effort: when Redis is down or a command fails the client
logs and answers as a cache miss, so callers fall through to the database.
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

import redis.asyncio as redis

from seatmarket.core.config import settings

logger = logging.getLogger(__name__)


def _encode(obj):
    """JSON fallback for enums, money and timestamps"""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


class RedisClient:
    """Async Redis wrapper used by CacheService"""

    def __init__(self, url: str = None):
        self.url = url or settings.REDIS_URL
        self.redis: Optional[redis.Redis] = None

    @property
    def available(self) -> bool:
        return self.redis is not None

    async def connect(self):
        try:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            await self.redis.ping()
            logger.info("✅ Redis connected successfully")
        except Exception as e:
            logger.error(f"❌ Redis connection failed, caching disabled: {e}")
            self.redis = None

    async def close(self):
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("🔴 Redis connection closed")

    async def get(self, key: str) -> Optional[Any]:
        """Decoded JSON value, or None on a miss"""
        if not self.available:
            return None
        try:
            value = await self.redis.get(key)
        except Exception as e:
            logger.error(f"Redis GET {key} failed: {e}")
            return None
        return json.loads(value) if value else None

    async def set(self, key: str, value: Any, ttl: int = None) -> bool:
        if not self.available:
            return False
        try:
            await self.redis.setex(key, ttl or settings.REDIS_CACHE_TTL, json.dumps(value, default=_encode))
        except Exception as e:
            logger.error(f"Redis SET {key} failed: {e}")
            return False
        return True

    async def delete(self, *keys: str) -> bool:
        if not self.available or not keys:
            return False
        try:
            await self.redis.delete(*keys)
        except Exception as e:
            logger.error(f"Redis DELETE {', '.join(keys)} failed: {e}")
            return False
        return True


redis_client = RedisClient()
