"""
Redis-backed store for engine state.

Provides async Redis operations with:
- Automatic JSON serialization/deserialization
- Lazy connection on first use
- StorageError on backend failures so the persister can retry and log
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from habitcore.config import REDIS_URL
from habitcore.exceptions import StorageError

logger = logging.getLogger(__name__)


class RedisStore:
    """
    Async Redis Store.

    Values are stored as JSON strings without expiry. Corrupt JSON reads as
    a missing key so a damaged blob never blocks startup.
    """

    def __init__(self, redis_url: str = REDIS_URL, client: Optional[Any] = None):
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            client: Pre-built redis.asyncio client (tests inject a mock)
        """
        self.redis_url = redis_url
        self._client: Optional[Any] = client

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._client is not None:
            return

        try:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=10,
            )
            await self._client.ping()
            logger.info(f"Redis store connected: {self.redis_url}")
        except Exception as e:
            self._client = None
            raise StorageError(f"Redis connection failed: {e}", operation="connect", cause=e)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis store connection closed")
            except Exception as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                self._client = None

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from Redis.

        Returns:
            Stored value (deserialized from JSON) or None if not found
        """
        await self.connect()
        try:
            value = await self._client.get(key)
        except Exception as e:
            raise StorageError(f"Redis GET failed: {e}", key=key, operation="get", cause=e)

        if value is None:
            logger.debug(f"Redis store MISS: {key}")
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"JSON decode error for key '{key}': {e}")
            return None

    async def set(self, key: str, value: Any) -> None:
        """
        Set value in Redis (JSON serialized).

        Unserializable values raise TypeError or ValueError unchanged.
        """
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"JSON encode error for key '{key}': {e}")
            raise

        await self.connect()
        try:
            await self._client.set(key, serialized)
            logger.debug(f"Redis store SET: {key}")
        except Exception as e:
            raise StorageError(f"Redis SET failed: {e}", key=key, operation="set", cause=e)

    async def delete(self, key: str) -> None:
        """Delete key from Redis."""
        await self.connect()
        try:
            await self._client.delete(key)
            logger.debug(f"Redis store DELETE: {key}")
        except Exception as e:
            raise StorageError(f"Redis DELETE failed: {e}", key=key, operation="delete", cause=e)
