"""Shared error taxonomy.

Every failure that crosses a layer boundary is one of these exceptions.
The API layer converts them into the standard error envelope; anything that
is not a ``ServiceError`` is treated as an unrecovered failure.
"""

from __future__ import annotations

from typing import Any


class ErrorCode:
    """Stable machine-readable error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


# Used when mapping bare HTTP status codes (e.g. router 404/405) to a code
STATUS_CODE_ERRORS: dict[int, str] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMIT_EXCEEDED,
}


def error_code_for_status(status_code: int) -> str:
    """Return the machine-readable code for an HTTP status."""
    if status_code in STATUS_CODE_ERRORS:
        return STATUS_CODE_ERRORS[status_code]
    if status_code >= 500:
        return ErrorCode.INTERNAL_SERVER_ERROR
    return ErrorCode.BAD_REQUEST


class ServiceError(Exception):
    """Base exception for user registry services."""

    code: str = ErrorCode.INTERNAL_SERVER_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
    ):
        self.message = message
        self.details = details
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_error_info(self) -> dict[str, Any]:
        """Render the error part of the response envelope."""
        info: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            info["details"] = self.details
        return info


class NotFoundError(ServiceError):
    """Entity absent in the store. Never cached."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, resource: str, identifier: Any = None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")


class AlreadyExistsError(ServiceError):
    """Unique constraint violated in the store."""

    code = ErrorCode.ALREADY_EXISTS
    status_code = 409


class ValidationFailedError(ServiceError):
    """Request rejected before reaching the store."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, validations: list[dict[str, Any]] | None = None):
        self.validations = validations or []
        super().__init__(message)

    def to_error_info(self) -> dict[str, Any]:
        info = super().to_error_info()
        if self.validations:
            info["validations"] = self.validations
        return info


class StoreError(ServiceError):
    """Entity store failure. Fatal to the current operation."""

    code = ErrorCode.DATABASE_ERROR
    status_code = 500


class DependencyUnavailableError(ServiceError):
    """A non-authoritative dependency (cache, broker) could not be reached."""

    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 503


class CacheUnavailableError(DependencyUnavailableError):
    """Cache read or write failed. Callers degrade to the store."""


class EventPublishError(DependencyUnavailableError):
    """Event could not be handed to the broker. Never rolls back a mutation."""
