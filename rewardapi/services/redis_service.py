"""
Redis service with async operations and graceful error handling.
- Never raises exceptions (returns None/False/0 on failure)
- Lazy connection with health checks
- Short socket timeouts: callers sit in front of the economic transaction
"""

from typing import Optional
import redis.asyncio as redis
import logging
from rewardapi.config import Settings

logger = logging.getLogger(__name__)


class RedisService:
    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: Optional[redis.Redis] = None

    async def _get_client(self) -> Optional[redis.Redis]:
        """Lazy connection with health check"""
        if self._client is None:
            try:
                redis_kwargs = {
                    "host": self._settings.REDIS_HOST,
                    "port": self._settings.REDIS_PORT,
                    "db": self._settings.REDIS_DB,
                    "decode_responses": True,
                    "socket_connect_timeout": self._settings.REDIS_SOCKET_TIMEOUT,
                    "socket_timeout": self._settings.REDIS_SOCKET_TIMEOUT,
                    "health_check_interval": 30,
                }

                # Only add password if it's set
                if self._settings.REDIS_PASSWORD:
                    redis_kwargs["password"] = self._settings.REDIS_PASSWORD

                self._client = redis.Redis(**redis_kwargs)
                await self._client.ping()
            except Exception as e:
                logger.warning(f"Redis connection failed: {e}")
                self._client = None
        return self._client

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds, 0 if the key is missing or on error"""
        try:
            client = await self._get_client()
            if client is None:
                return 0
            remaining = await client.ttl(key)
            return max(int(remaining), 0)
        except Exception as e:
            logger.warning(f"Redis TTL failed for {key}: {e}")
            return 0

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set value with TTL, returns success status"""
        try:
            client = await self._get_client()
            if client is None:
                return False
            await client.set(key, value, ex=ttl_seconds)
            return True
        except Exception as e:
            logger.warning(f"Redis SET failed for {key}: {e}")
            return False

    async def incr_with_expiry(self, key: str, window_seconds: int) -> Optional[tuple]:
        """INCR + EXPIRE(최초 1회). (count, ttl) 반환, 실패 시 None"""
        try:
            client = await self._get_client()
            if client is None:
                return None
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, window_seconds)
            remaining = await client.ttl(key)
            return int(count), max(int(remaining), 0)
        except Exception as e:
            logger.warning(f"Redis INCR failed for {key}: {e}")
            return None

    async def delete(self, *keys: str) -> int:
        try:
            client = await self._get_client()
            if client is None:
                return 0
            return int(await client.delete(*keys))
        except Exception as e:
            logger.warning(f"Redis DEL failed for {keys}: {e}")
            return 0

    async def close(self):
        """Close connection pool on app shutdown"""
        if self._client:
            await self._client.aclose()
