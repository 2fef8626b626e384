"""Unit tests for the domain event publisher."""

import asyncio
import json

import pytest
import pytest_asyncio

from shared.errors import EventPublishError
from shared.events import EventPublisher
from shared.models import DomainEvent


class SlowRedisClient:
    """Publishes only after a delay."""

    def __init__(self, delay: float):
        self.delay = delay
        self.published: list[tuple[str, str]] = []

    async def ping(self, db=None):
        return True

    async def publish(self, channel: str, message: str) -> int:
        await asyncio.sleep(self.delay)
        self.published.append((channel, message))
        return 1


@pytest_asyncio.fixture
async def publisher(fake_redis):
    publisher = EventPublisher(fake_redis, exchange="api_exchange", queue_size=10)
    await publisher.setup()
    yield publisher
    await publisher.close()


@pytest.mark.asyncio
async def test_setup_marks_ready(publisher: EventPublisher):
    assert publisher.is_ready


@pytest.mark.asyncio
async def test_setup_failure_leaves_publisher_unusable(fake_redis):
    """An unreachable channel degrades to running without events."""
    fake_redis.reachable = False
    publisher = EventPublisher(fake_redis)

    assert await publisher.setup() is False
    assert not publisher.is_ready
    assert publisher.submit(DomainEvent(category="user", event_type="created")) is False
    with pytest.raises(EventPublishError):
        await publisher.publish("user.created", {})


@pytest.mark.asyncio
async def test_disabled_publisher(fake_redis):
    publisher = EventPublisher(fake_redis, enabled=False)
    assert await publisher.setup() is False
    assert not publisher.is_ready


@pytest.mark.asyncio
async def test_publish_user_event(publisher: EventPublisher, fake_redis):
    """Routing key is user.{event_type}, published under the exchange namespace."""
    await publisher.publish_user_event("created", 7, {"username": "jdoe"})

    channel, message = fake_redis.published[0]
    assert channel == "api_exchange.user.created"
    body = json.loads(message)
    assert body["event_type"] == "created"
    assert body["subject_id"] == 7
    assert body["data"] == {"username": "jdoe"}
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_publish_system_event(publisher: EventPublisher, fake_redis):
    await publisher.publish_system_event("health_check", {"status": "healthy"})

    channel, message = fake_redis.published[0]
    assert channel == "api_exchange.system.health_check"
    assert json.loads(message)["subject_id"] is None


@pytest.mark.asyncio
async def test_publish_failure_raises(publisher: EventPublisher, fake_redis):
    fake_redis.fail_publish = True
    with pytest.raises(EventPublishError):
        await publisher.publish("user.created", {"id": 1})


@pytest.mark.asyncio
async def test_publish_timeout_raises():
    publisher = EventPublisher(SlowRedisClient(delay=1.0), publish_timeout=0.01)
    await publisher.setup()
    try:
        with pytest.raises(EventPublishError):
            await publisher.publish("user.created", {"id": 1})
    finally:
        await publisher.close()


@pytest.mark.asyncio
async def test_submit_is_delivered_by_worker(publisher: EventPublisher, fake_redis):
    event = DomainEvent(category="user", event_type="deleted", subject_id=3)

    assert publisher.submit(event) is True
    await publisher.flush()

    assert fake_redis.published[0][0] == "api_exchange.user.deleted"


@pytest.mark.asyncio
async def test_worker_survives_publish_failure(publisher: EventPublisher, fake_redis):
    """A failed publish is logged and the next event still goes out."""
    fake_redis.fail_publish = True
    publisher.submit(DomainEvent(category="user", event_type="created", subject_id=1))
    await publisher.flush()

    fake_redis.fail_publish = False
    publisher.submit(DomainEvent(category="user", event_type="updated", subject_id=1))
    await publisher.flush()

    assert [channel for channel, _ in fake_redis.published] == ["api_exchange.user.updated"]


@pytest.mark.asyncio
async def test_full_queue_drops_events():
    """Submission never waits; overflow is dropped."""
    publisher = EventPublisher(SlowRedisClient(delay=0.05), queue_size=1, drain_timeout=1.0)
    await publisher.setup()
    try:
        results = [
            publisher.submit(DomainEvent(category="user", event_type="created", subject_id=i))
            for i in range(5)
        ]
        assert results[0] is True
        assert False in results
    finally:
        await publisher.close()


@pytest.mark.asyncio
async def test_close_drains_pending_events(fake_redis):
    publisher = EventPublisher(fake_redis)
    await publisher.setup()
    for i in range(3):
        publisher.submit(DomainEvent(category="user", event_type="created", subject_id=i))

    await publisher.close()

    assert len(fake_redis.published) == 3
    assert not publisher.is_ready
    assert publisher.submit(DomainEvent(category="user", event_type="created")) is False
