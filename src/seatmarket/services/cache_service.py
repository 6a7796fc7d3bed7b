"""
Cache service for managing Redis cache keys and invalidation
"""
from typing import Optional, Dict, Any
from seatmarket.core.redis import redis_client
from seatmarket.core.config import settings
import logging

logger = logging.getLogger(__name__)


class CacheService:
    """Service for managing cache keys and invalidation"""

    # Cache key patterns
    EVENT_SEATS_KEY = "event:{event_id}:seats"
    EVENT_RATINGS_KEY = "event:{event_id}:ratings"

    @staticmethod
    async def get_event_seats(event_id: int) -> Optional[Dict[str, Any]]:
        """Get cached seat status"""
        key = CacheService.EVENT_SEATS_KEY.format(event_id=event_id)
        cached = await redis_client.get(key)
        if cached:
            logger.debug(f"Cache HIT: {key}")
        return cached

    @staticmethod
    async def set_event_seats(event_id: int, data: Dict[str, Any]) -> bool:
        """Cache seat status (short TTL due to high volatility)"""
        key = CacheService.EVENT_SEATS_KEY.format(event_id=event_id)
        return await redis_client.set(key, data, ttl=settings.REDIS_SEATS_TTL)

    @staticmethod
    async def invalidate_event(event_id: int) -> bool:
        """Invalidate all cache for an event"""
        keys_to_delete = [
            CacheService.EVENT_SEATS_KEY.format(event_id=event_id),
            CacheService.EVENT_RATINGS_KEY.format(event_id=event_id),
        ]
        logger.info(f"🗑️ Invalidating cache for event {event_id}")
        return await redis_client.delete(*keys_to_delete)

    @staticmethod
    async def invalidate_event_seats(event_id: int) -> bool:
        """Invalidate only seat-related cache"""
        key = CacheService.EVENT_SEATS_KEY.format(event_id=event_id)
        logger.info(f"🗑️ Invalidating seat cache for event {event_id}")
        return await redis_client.delete(key)

    @staticmethod
    async def get_rating_summary(event_id: int) -> Optional[Dict[str, Any]]:
        key = CacheService.EVENT_RATINGS_KEY.format(event_id=event_id)
        return await redis_client.get(key)

    @staticmethod
    async def set_rating_summary(event_id: int, data: Dict[str, Any]) -> bool:
        key = CacheService.EVENT_RATINGS_KEY.format(event_id=event_id)
        return await redis_client.set(key, data, ttl=settings.REDIS_CACHE_TTL)

    @staticmethod
    async def invalidate_rating_summary(event_id: int) -> bool:
        key = CacheService.EVENT_RATINGS_KEY.format(event_id=event_id)
        return await redis_client.delete(key)
