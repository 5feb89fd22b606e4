"""
Redis cache for computed style profiles.

Disabled unless STYLE_PROFILE_CACHE_TTL > 0; profiles are recomputed
from the post corpus on every request by default. Redis errors never
reach callers: reads miss, writes and invalidations are skipped.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from app.core.config import settings

logger = structlog.get_logger(__name__)


class RedisCache:
    """
    Redis cache manager with typed key patterns.

    Key Patterns:
    - style_profile:{user_id} - Computed (non-manual) style profile
    """

    STYLE_PROFILE_PREFIX = "style_profile"

    def __init__(self):
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Establish Redis connection; stays disconnected if the ping fails."""
        if self._client is not None:
            return
        client = redis.from_url(
            str(settings.redis_url),
            encoding="utf-8",
            decode_responses=True,
        )
        try:
            await client.ping()
        except RedisError:
            await client.aclose()
            raise
        self._client = client

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def enabled(self) -> bool:
        """Profile caching is on only when configured and connected."""
        return self.is_connected and settings.style_profile_cache_ttl > 0

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raising if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self._client

    def _key(self, user_id: str) -> str:
        return f"{self.STYLE_PROFILE_PREFIX}:{user_id}"

    # Style Profile Cache
    async def set_style_profile(self, user_id: str, profile: dict[str, Any]) -> None:
        """Store a computed style profile."""
        if not self.enabled:
            return
        try:
            await self.client.setex(
                self._key(user_id), settings.style_profile_cache_ttl, json.dumps(profile)
            )
        except RedisError as e:
            logger.warning("Style profile cache write failed", user_id=user_id, error=str(e))

    async def get_style_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        """Retrieve cached style profile, or None if not cached."""
        if not self.enabled:
            return None
        try:
            data = await self.client.get(self._key(user_id))
        except RedisError as e:
            logger.warning("Style profile cache read failed", user_id=user_id, error=str(e))
            return None
        return json.loads(data) if data else None

    async def invalidate_style_profile(self, user_id: str) -> None:
        """Drop the cached profile after the corpus or override changed."""
        if not self.is_connected:
            return
        try:
            await self.client.delete(self._key(user_id))
        except RedisError as e:
            logger.warning("Style profile cache invalidation failed", user_id=user_id, error=str(e))


# Global cache instance
cache = RedisCache()
