"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shared.models import APIResponse, DomainEvent, EventCategory, EventType
from shared.observability import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Health check",
    description="Basic health check endpoint.",
)
async def health(request: Request):
    """Basic health check. Announces itself as ``system.health_check``."""
    settings = request.app.state.settings
    publisher = getattr(request.app.state, "publisher", None)
    if publisher is not None:
        publisher.submit(
            DomainEvent(
                category=EventCategory.SYSTEM.value,
                event_type=EventType.HEALTH_CHECK.value,
                data={"status": "healthy", "service": settings.app_name},
            )
        )
    return APIResponse.ok(
        200,
        "Service is healthy",
        data={"status": "healthy", "service": settings.app_name, "version": settings.app_version},
    ).to_json()


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if service is ready to receive traffic.",
)
async def ready(request: Request):
    """Readiness check.

    The database is required. Cache and event channel are reported but a
    degraded cache or a publisher without a channel does not fail readiness.
    """
    state = request.app.state
    checks = {
        "database": False,
        "cache": False,
        "events": False,
    }

    try:
        async with state.session_factory() as session:
            await session.execute(text("SELECT 1"))
            checks["database"] = True
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database readiness check failed", error=str(e))

    health_result = await state.redis.health_check()
    checks["cache"] = health_result.get("status") == "healthy"

    publisher = getattr(state, "publisher", None)
    checks["events"] = bool(publisher and publisher.is_ready)

    is_ready = checks["database"]
    status_code = 200 if is_ready else 503
    envelope = APIResponse(
        success=is_ready,
        status_code=status_code,
        message="Service is ready" if is_ready else "Service is not ready",
        data={"status": "ready" if is_ready else "not_ready", "checks": checks},
    )
    return JSONResponse(status_code=status_code, content=envelope.to_json())
