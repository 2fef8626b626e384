"""Test fixtures for the User Registry."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool
from structlog.testing import CapturingLogger

from shared.config import Settings
from shared.database import Base, create_engine, create_session_factory
from shared.events import EventPublisher
from shared.observability import ErrorReporter

# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with tables.

    StaticPool keeps every session on the one in-memory database.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def test_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def publisher(fake_redis) -> AsyncGenerator[EventPublisher, None]:
    """Event publisher over the in-memory Redis client."""
    publisher = EventPublisher(fake_redis, exchange="api_exchange")
    await publisher.setup()
    yield publisher
    await publisher.close()


@pytest.fixture
def access_logger() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def report_logger() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(app_name="user-registry-test")


@pytest.fixture
def test_app(test_settings, session_factory, fake_redis, publisher, access_logger, report_logger):
    """Application with state wired to test doubles (lifespan does not run)."""
    from user_registry.main import create_app

    app = create_app(
        settings=test_settings,
        reporter=ErrorReporter(logger=report_logger),
        access_logger=access_logger,
    )
    app.state.session_factory = session_factory
    app.state.redis = fake_redis
    app.state.publisher = publisher
    return app


@pytest_asyncio.fixture
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
