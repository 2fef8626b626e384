"""User Registry FastAPI Application.

The User Registry Service provides:
- CRUD operations for users backed by PostgreSQL
- Cache-aside reads and write-overwrite caching in Redis
- Best-effort domain events over Redis pub/sub
- Per-request tracing, redacted access logging and error reporting
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from shared.config import Settings, get_settings
from shared.database import Base, create_engine, create_session_factory
from shared.events import EventPublisher
from shared.observability import ErrorReporter, RedactionPolicy, get_logger, setup_logging
from shared.redis_client import RedisClient

from .api import health, register_exception_handlers, users
from .middleware import ObservabilityMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown of:
    - Database connections
    - Redis connections
    - Event publisher and its worker
    """
    settings: Settings = app.state.settings
    logger.info("Starting User Registry service", version=settings.app_version)

    # Initialize database
    engine = create_engine(
        settings.database.async_url,
        echo=settings.debug,
        connect_timeout=settings.database.connect_timeout_seconds,
        pool_timeout=settings.database.pool_timeout_seconds,
    )
    app.state.db_engine = engine
    app.state.session_factory = create_session_factory(engine)

    # Create tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")

    # Initialize Redis
    redis_client = RedisClient(
        settings.redis.url,
        socket_timeout=settings.redis.socket_timeout_seconds,
        connect_timeout=settings.redis.connect_timeout_seconds,
    )
    await redis_client.connect()
    app.state.redis = redis_client

    # Event channel failure leaves the publisher unusable, not the service
    publisher = EventPublisher(
        redis_client,
        exchange=settings.events.exchange,
        queue_size=settings.events.queue_size,
        publish_timeout=settings.events.publish_timeout_seconds,
        drain_timeout=settings.events.drain_timeout_seconds,
        enabled=settings.events.enabled,
    )
    await publisher.setup()
    app.state.publisher = publisher

    logger.info("User Registry service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down User Registry service")
    await publisher.close()
    await redis_client.close()
    await engine.dispose()
    logger.info("User Registry service shutdown complete")


def create_app(
    settings: Settings | None = None,
    reporter: ErrorReporter | None = None,
    access_logger=None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        reporter: Error reporter used by the observability middleware
        access_logger: Logger receiving one access record per request
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="User Registry Service",
        description="User CRUD with cache-aside reads, domain events and request tracing",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        ObservabilityMiddleware,
        redaction=RedactionPolicy(max_body_chars=settings.observability.max_body_chars),
        reporter=reporter,
        access_logger=access_logger,
        max_buffered_body_bytes=settings.observability.max_buffered_body_bytes,
    )
    register_exception_handlers(app)

    # Include routers
    app.include_router(users.router, prefix="/v1", tags=["Users"])
    app.include_router(health.router, tags=["Health"])

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
