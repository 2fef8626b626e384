"""Top-level exception handlers.

Every failure leaves the service as the standard error envelope. Unhandled
exceptions are reported once, by the observability middleware; the handler
here only converts them into a 500 response.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.errors import ErrorCode, ServiceError, ValidationFailedError, error_code_for_status
from shared.models import APIResponse, DomainEvent, ErrorInfo, EventCategory, EventType
from shared.observability import get_logger

logger = get_logger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: str | None = None,
    validations: list[dict[str, str]] | None = None,
) -> JSONResponse:
    """Build the error envelope."""
    envelope = APIResponse.fail(
        status_code=status_code,
        message=message,
        error=ErrorInfo(
            code=code,
            message=message,
            details=details,
            validations=validations,
            request_id=_request_id(request),
        ),
    )
    return JSONResponse(status_code=status_code, content=envelope.to_json())


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    info = exc.to_error_info()
    return error_response(
        request,
        exc.status_code,
        exc.code,
        exc.message,
        details=exc.details,
        validations=info.get("validations"),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    validations = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        validations.append(
            {"field": ".".join(location) or "request", "message": error.get("msg", "invalid value")}
        )
    return await service_error_handler(
        request, ValidationFailedError("Validation failed", validations=validations)
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = error_response(
        request, exc.status_code, error_code_for_status(exc.status_code), message
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    publisher = getattr(request.app.state, "publisher", None)
    if publisher is not None:
        publisher.submit(
            DomainEvent(
                category=EventCategory.SYSTEM.value,
                event_type=EventType.ERROR.value,
                data={
                    "error_type": type(exc).__name__,
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": _request_id(request),
                },
            )
        )
    return error_response(
        request,
        500,
        ErrorCode.INTERNAL_SERVER_ERROR,
        "Internal server error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the top-level error boundary on the application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
