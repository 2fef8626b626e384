"""Cache-aside repository for users.

Reads go to the cache first and fall back to the store, filling the cache
after a miss. Writes go to the store first, then overwrite (create, update)
or delete (delete) the cache entry. The store is the only source of truth:
a cache failure or a corrupt cache entry never fails an operation, it only
costs a store round trip.

A concurrent read interleaved between the store write and the cache write
of an update may see the old or the new value. Each cache write replaces
the whole entry, so it never sees a mix of two writes.
"""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import ValidationError

from shared.errors import CacheUnavailableError, NotFoundError
from shared.observability import get_logger
from shared.redis_client import cache_key

from ..schemas.user import UserResponse, UserSearchParams

logger = get_logger(__name__)

ENTITY_TYPE = "user"


class UserStore(Protocol):
    """System-of-record operations the cache-aside repository needs."""

    async def create(self, data: dict[str, Any]) -> Any: ...

    async def get_by_id(self, user_id: int) -> Any | None: ...

    async def get_by_username(self, username: str) -> Any | None: ...

    async def list(self, params: UserSearchParams) -> tuple[list[Any], int]: ...

    async def update(self, user_id: int, changes: dict[str, Any]) -> Any | None: ...

    async def soft_delete(self, user_id: int) -> bool: ...


class UserCache(Protocol):
    """Key/value operations with per-key expiration."""

    async def cache_get(self, key: str) -> str | None: ...

    async def cache_set(self, key: str, value: str, ttl_seconds: int = 3600) -> None: ...

    async def cache_delete(self, key: str) -> bool: ...


class CachedUserRepository:
    """Read-through, write-overwrite access to users."""

    def __init__(
        self,
        store: UserStore,
        cache: UserCache,
        ttl_seconds: int = 3600,
        key_prefix: str = "entity",
    ):
        self.store = store
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def key_for(self, user_id: int) -> str:
        return cache_key(ENTITY_TYPE, user_id, self.key_prefix)

    async def get(self, user_id: int) -> UserResponse:
        """Return the cached user, or read it from the store and cache it.

        Raises:
            NotFoundError: No such user in the store. Nothing is cached.
        """
        key = self.key_for(user_id)
        cached = await self._read_cache(key)
        if cached is not None:
            return cached

        model = await self.store.get_by_id(user_id)
        if model is None:
            raise NotFoundError("User", user_id)

        user = UserResponse.model_validate(model)
        await self._write_cache(key, user)
        return user

    async def create(self, data: dict[str, Any]) -> UserResponse:
        """Create in the store, then cache the new user under its assigned id."""
        model = await self.store.create(data)
        user = UserResponse.model_validate(model)
        await self._write_cache(self.key_for(user.id), user)
        return user

    async def update(self, user_id: int, changes: dict[str, Any]) -> UserResponse:
        """Update in the store, then overwrite the cache entry with the result."""
        model = await self.store.update(user_id, changes)
        if model is None:
            raise NotFoundError("User", user_id)

        user = UserResponse.model_validate(model)
        await self._write_cache(self.key_for(user_id), user)
        return user

    async def delete(self, user_id: int) -> None:
        """Soft delete in the store, then drop the cache entry.

        A store failure propagates before the cache is touched.
        """
        if not await self.store.soft_delete(user_id):
            raise NotFoundError("User", user_id)
        await self._evict(self.key_for(user_id))

    async def get_by_username(self, username: str) -> UserResponse:
        model = await self.store.get_by_username(username)
        if model is None:
            raise NotFoundError("User", username)
        return UserResponse.model_validate(model)

    async def list(self, params: UserSearchParams) -> tuple[list[UserResponse], int]:
        models, total = await self.store.list(params)
        return [UserResponse.model_validate(m) for m in models], total

    async def _read_cache(self, key: str) -> UserResponse | None:
        try:
            raw = await self.cache.cache_get(key)
        except CacheUnavailableError as e:
            logger.warning("Cache read failed, reading store", key=key, error=e.details)
            return None
        if raw is None:
            return None
        try:
            return UserResponse.model_validate_json(raw)
        except ValidationError:
            logger.warning("Corrupt cache entry, reading store", key=key)
            return None

    async def _write_cache(self, key: str, user: UserResponse) -> None:
        try:
            await self.cache.cache_set(
                key, user.model_dump_json(by_alias=True), ttl_seconds=self.ttl_seconds
            )
        except CacheUnavailableError as e:
            logger.warning("Cache write failed", key=key, error=e.details)

    async def _evict(self, key: str) -> None:
        try:
            await self.cache.cache_delete(key)
        except CacheUnavailableError as e:
            logger.warning("Cache delete failed", key=key, error=e.details)
