"""Tests for the user service."""

import json

import pytest

from shared.errors import AlreadyExistsError, NotFoundError
from shared.observability import SpanManager, SpanStatus
from user_registry.repositories import CachedUserRepository, UserRepository
from user_registry.schemas.user import UserCreateRequest, UserSearchParams, UserUpdateRequest
from user_registry.services import UserService, hash_password, verify_password


class RecordingPublisher:
    """Records submitted events with a snapshot of the cache at submit time."""

    def __init__(self, cache):
        self.cache = cache
        self.events = []

    def submit(self, event):
        self.events.append((event, dict(self.cache.data)))
        return True


@pytest.fixture
def span_manager() -> SpanManager:
    return SpanManager()


@pytest.fixture
def root_span(span_manager):
    return span_manager.start_span(None, "POST /v1/users", op="http.server")


@pytest.fixture
def service(test_session, fake_redis, publisher, span_manager, root_span) -> UserService:
    repository = CachedUserRepository(UserRepository(test_session), fake_redis)
    return UserService(
        repository, publisher=publisher, span_manager=span_manager, parent_span=root_span
    )


def _create_request(username: str = "jdoe") -> UserCreateRequest:
    return UserCreateRequest(
        username=username,
        email=f"{username}@example.com",
        password="s3cretpass",
        first_name="John",
        last_name="Doe",
    )


def test_password_hashing():
    encoded = hash_password("s3cretpass", iterations=1000)
    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cretpass", encoded)
    assert not verify_password("wrong", encoded)
    assert not verify_password("s3cretpass", "garbage")
    assert hash_password("s3cretpass", iterations=1000) != encoded


@pytest.mark.asyncio
async def test_create_stores_password_hash(service, test_session):
    user = await service.create(_create_request())

    stored = await UserRepository(test_session).get_by_id(user.id)
    assert stored.password_hash != "s3cretpass"
    assert verify_password("s3cretpass", stored.password_hash)


@pytest.mark.asyncio
async def test_create_publishes_user_created(service, publisher, fake_redis):
    user = await service.create(_create_request())
    await publisher.flush()

    channel, message = fake_redis.published[-1]
    body = json.loads(message)
    assert channel == "api_exchange.user.created"
    assert body["event_type"] == "created"
    assert body["subject_id"] == user.id
    assert body["data"]["username"] == "jdoe"
    assert "password" not in message


@pytest.mark.asyncio
async def test_create_succeeds_when_publish_fails(service, publisher, fake_redis):
    """A broken broker never aborts the mutation."""
    fake_redis.fail_publish = True

    user = await service.create(_create_request())
    await publisher.flush()

    assert user.id is not None
    assert fake_redis.published == []
    assert await service.get_by_id(user.id) == user


@pytest.mark.asyncio
async def test_event_submitted_after_cache_write(test_session, fake_redis):
    publisher = RecordingPublisher(fake_redis)
    service = UserService(
        CachedUserRepository(UserRepository(test_session), fake_redis), publisher=publisher
    )

    user = await service.create(_create_request())

    event, cache_snapshot = publisher.events[0]
    assert event.routing_key == "user.created"
    assert f"entity:user:{user.id}" in cache_snapshot


@pytest.mark.asyncio
async def test_create_duplicate(service):
    await service.create(_create_request())
    with pytest.raises(AlreadyExistsError):
        await service.create(_create_request())


@pytest.mark.asyncio
async def test_operations_open_child_spans(service, root_span):
    user = await service.create(_create_request())
    await service.get_by_id(user.id)
    with pytest.raises(NotFoundError):
        await service.get_by_id(user.id + 100)

    names = [(child.name, child.status) for child in root_span.children]
    assert names == [
        ("user.create", SpanStatus.OK),
        ("user.get_by_id", SpanStatus.OK),
        ("user.get_by_id", SpanStatus.NOT_FOUND),
    ]
    assert root_span.children[0].attributes["user_id"] == user.id


@pytest.mark.asyncio
async def test_update_skips_empty_fields(service, publisher, fake_redis):
    user = await service.create(_create_request())

    updated = await service.update(
        user.id, UserUpdateRequest(first_name="Jane", last_name="", email=None)
    )
    await publisher.flush()

    assert updated.first_name == "Jane"
    assert updated.last_name == "Doe"
    assert updated.email == "jdoe@example.com"
    assert fake_redis.published[-1][0] == "api_exchange.user.updated"


@pytest.mark.asyncio
async def test_delete_publishes_and_hides_user(service, publisher, fake_redis):
    user = await service.create(_create_request())

    await service.delete(user.id)
    await publisher.flush()

    assert fake_redis.published[-1][0] == "api_exchange.user.deleted"
    with pytest.raises(NotFoundError):
        await service.get_by_id(user.id)


@pytest.mark.asyncio
async def test_get_all_returns_pagination(service):
    for i in range(3):
        await service.create(_create_request(f"user{i}"))

    users, pagination = await service.get_all(UserSearchParams(page=2, limit=2))

    assert len(users) == 1
    assert pagination.total_items == 3
    assert pagination.total_pages == 2
    assert pagination.has_next_page is False
    assert pagination.has_prev_page is True


@pytest.mark.asyncio
async def test_get_by_username(service):
    await service.create(_create_request("alice"))

    user = await service.get_by_username("alice")

    assert user.email == "alice@example.com"
    with pytest.raises(NotFoundError):
        await service.get_by_username("nobody")
