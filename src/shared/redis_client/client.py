"""Redis client wrapper.

Redis Database Layout:
- DB 0: PubSub, domain events ({exchange}.{category}.{event_type})
- DB 1: Caching (entity:{entity_type}:{id})

Every command runs with a bounded socket timeout. Cache operations raise
``CacheUnavailableError`` on any Redis failure so callers can degrade.
"""

from enum import IntEnum
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import CacheUnavailableError


class RedisDB(IntEnum):
    """Redis database numbers."""

    PUBSUB = 0
    CACHE = 1


def cache_key(entity_type: str, entity_id: Any, prefix: str = "entity") -> str:
    """Build the cache key of one entity.

    Key pattern: {prefix}:{entity_type}:{id}
    """
    return f"{prefix}:{entity_type}:{entity_id}"


class RedisClient:
    """Async Redis client with connection pooling."""

    def __init__(
        self,
        url: str = "redis://localhost:6379",
        socket_timeout: float = 2.0,
        connect_timeout: float = 2.0,
    ):
        """Initialize Redis client.

        Args:
            url: Redis connection URL
            socket_timeout: Timeout for a single command in seconds
            connect_timeout: Timeout for establishing a connection in seconds
        """
        self._url = url
        self._socket_timeout = socket_timeout
        self._connect_timeout = connect_timeout
        self._pools: dict[int, redis.ConnectionPool] = {}
        self._clients: dict[int, redis.Redis] = {}

    async def connect(self) -> None:
        """Initialize connection pools for all databases."""
        for db in RedisDB:
            pool = redis.ConnectionPool.from_url(
                self._url,
                db=db.value,
                decode_responses=True,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._connect_timeout,
            )
            self._pools[db] = pool
            self._clients[db] = redis.Redis(connection_pool=pool)

    async def close(self) -> None:
        """Close all connections."""
        for client in self._clients.values():
            await client.aclose()
        for pool in self._pools.values():
            await pool.disconnect()
        self._clients.clear()
        self._pools.clear()

    def get_client(self, db: RedisDB) -> redis.Redis:
        """Get Redis client for specific database."""
        if db not in self._clients:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._clients[db]

    async def ping(self, db: RedisDB = RedisDB.PUBSUB) -> bool:
        """Round-trip one database."""
        return await self.get_client(db).ping()

    def _cache_client(self) -> redis.Redis:
        if RedisDB.CACHE not in self._clients:
            raise CacheUnavailableError("Cache not connected")
        return self._clients[RedisDB.CACHE]

    # =========================================================================
    # PubSub Operations (DB 0)
    # =========================================================================

    async def publish(self, channel: str, message: str) -> int:
        """Publish a serialized message on a channel.

        Returns:
            Number of subscribers that received the message
        """
        client = self.get_client(RedisDB.PUBSUB)
        return await client.publish(channel, message)

    # =========================================================================
    # Cache Operations (DB 1)
    # =========================================================================

    async def cache_get(self, key: str) -> str | None:
        """Get cached value.

        Returns:
            Cached value or None on a miss
        """
        client = self._cache_client()
        try:
            return await client.get(key)
        except RedisError as e:
            raise CacheUnavailableError("Cache read failed", details=str(e)) from e

    async def cache_set(self, key: str, value: str, ttl_seconds: int = 3600) -> None:
        """Set cached value, replacing any previous value and TTL."""
        client = self._cache_client()
        try:
            await client.setex(key, ttl_seconds, value)
        except RedisError as e:
            raise CacheUnavailableError("Cache write failed", details=str(e)) from e

    async def cache_set_persistent(self, key: str, value: str) -> None:
        """Set cached value without expiration (settings-like data)."""
        client = self._cache_client()
        try:
            await client.set(key, value)
        except RedisError as e:
            raise CacheUnavailableError("Cache write failed", details=str(e)) from e

    async def cache_delete(self, key: str) -> bool:
        """Delete cached value.

        Returns:
            True if key was deleted
        """
        client = self._cache_client()
        try:
            result = await client.delete(key)
        except RedisError as e:
            raise CacheUnavailableError("Cache delete failed", details=str(e)) from e
        return result > 0

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> dict[str, Any]:
        """Check Redis connectivity.

        Returns:
            Health status dict
        """
        results = {}
        for db in RedisDB:
            try:
                client = self.get_client(db)
                await client.ping()
                results[db.name.lower()] = {"status": "healthy"}
            except (RuntimeError, RedisError) as e:
                results[db.name.lower()] = {"status": "unhealthy", "error": str(e)}

        all_healthy = all(r["status"] == "healthy" for r in results.values())
        return {
            "status": "healthy" if all_healthy else "unhealthy",
            "databases": results,
        }
