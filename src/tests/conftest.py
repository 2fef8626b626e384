"""Pytest configuration and shared fixtures."""

import os
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from shared.errors import CacheUnavailableError

# Set test environment before importing settings
os.environ["ENV"] = "development"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "text"


class FakeRedisClient:
    """In-memory stand-in for RedisClient (cache and pub/sub)."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.published: list[tuple[str, str]] = []
        self.fail_cache = False
        self.fail_publish = False
        self.reachable = True

    async def connect(self):
        pass

    async def close(self):
        pass

    async def ping(self, db=None):
        if not self.reachable:
            raise RedisConnectionError("Connection refused")
        return True

    async def publish(self, channel: str, message: str) -> int:
        if self.fail_publish:
            raise RedisConnectionError("Connection reset by peer")
        self.published.append((channel, message))
        return 1

    async def cache_get(self, key: str) -> str | None:
        if self.fail_cache:
            raise CacheUnavailableError("Cache read failed", details="Connection refused")
        return self.data.get(key)

    async def cache_set(self, key: str, value: str, ttl_seconds: int = 3600) -> None:
        if self.fail_cache:
            raise CacheUnavailableError("Cache write failed", details="Connection refused")
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def cache_set_persistent(self, key: str, value: str) -> None:
        if self.fail_cache:
            raise CacheUnavailableError("Cache write failed", details="Connection refused")
        self.data[key] = value
        self.ttls[key] = None

    async def cache_delete(self, key: str) -> bool:
        if self.fail_cache:
            raise CacheUnavailableError("Cache delete failed", details="Connection refused")
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    async def health_check(self) -> dict[str, Any]:
        status = "healthy" if self.reachable and not self.fail_cache else "unhealthy"
        return {"status": status, "databases": {}}


@pytest.fixture
def fake_redis() -> FakeRedisClient:
    """Create in-memory Redis client."""
    return FakeRedisClient()


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Sample user create request body."""
    return {
        "username": "jdoe",
        "email": "jdoe@example.com",
        "password": "s3cretpass",
        "firstName": "John",
        "lastName": "Doe",
    }


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
    config.addinivalue_line("markers", "slow: Slow tests")
