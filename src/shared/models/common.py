"""Common types used across all models.

The response envelope wraps every API response:
{success, statusCode, message, data?, error?, pagination?}
"""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import Field

from .base import RegistryBaseModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PaginationParams(RegistryBaseModel):
    """Pagination parameters for list endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(
        default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page (max 100)"
    )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(RegistryBaseModel):
    """Pagination window of one list response."""

    current_page: int
    per_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_counts(cls, page: int, per_page: int, total_items: int) -> "PaginationMeta":
        """Derive the window from the requested page and the total count.

        total_pages = ceil(total_items / per_page); zero items means zero pages.
        """
        total_pages = (total_items + per_page - 1) // per_page if per_page > 0 else 0
        return cls(
            current_page=page,
            per_page=per_page,
            total_pages=total_pages,
            total_items=total_items,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class ValidationDetail(RegistryBaseModel):
    """One rejected request field."""

    field: str
    message: str


class ErrorInfo(RegistryBaseModel):
    """Error part of the response envelope."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: str | None = Field(default=None, description="Additional error context")
    validations: list[ValidationDetail] | None = None
    request_id: str | None = Field(default=None, description="Request ID for debugging")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class APIResponse(RegistryBaseModel, Generic[T]):
    """Standard response envelope."""

    success: bool
    status_code: int
    message: str
    data: T | None = None
    error: ErrorInfo | None = None
    pagination: PaginationMeta | None = None

    @classmethod
    def ok(
        cls,
        status_code: int,
        message: str,
        data: Any = None,
        pagination: PaginationMeta | None = None,
    ) -> "APIResponse":
        return cls(
            success=True,
            status_code=status_code,
            message=message,
            data=data,
            pagination=pagination,
        )

    @classmethod
    def fail(
        cls,
        status_code: int,
        message: str,
        error: ErrorInfo,
    ) -> "APIResponse":
        return cls(success=False, status_code=status_code, message=message, error=error)

    def to_json(self) -> dict[str, Any]:
        """Dump with camelCase keys, leaving out absent optional parts."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
