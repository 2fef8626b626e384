"""Redis client wrapper with cache and pub/sub support.

Database Layout:
- DB 0: PubSub, domain events
- DB 1: Caching (entity:{entity_type}:{id})
"""

from .client import RedisClient, RedisDB, cache_key

__all__ = [
    "RedisClient",
    "RedisDB",
    "cache_key",
]
