"""User request/response schemas.

Wire format is camelCase (firstName, isActive, createdAt); snake_case
input is accepted too.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import EmailStr, Field, field_validator

from shared.models import PaginationParams, RegistryBaseModel

MAX_EMAIL_LENGTH = 100


def _normalize_email(v: str | None) -> str | None:
    if v is None:
        return v
    if len(v) > MAX_EMAIL_LENGTH:
        raise ValueError(f"must be at most {MAX_EMAIL_LENGTH} characters")
    return v.lower()


class UserSortField(str, Enum):
    """Sortable user fields, named as on the wire."""

    USERNAME = "username"
    EMAIL = "email"
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    IS_ACTIVE = "isActive"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class UserCreateRequest(RegistryBaseModel):
    """Request to create a user."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdateRequest(RegistryBaseModel):
    """Partial update. Absent or empty fields are left untouched."""

    username: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        if v and len(v) < 3:
            raise ValueError("must be at least 3 characters")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_as_unset(cls, v: object) -> object:
        return None if v == "" else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)

    def changes(self) -> dict[str, object]:
        """Fields to write, skipping absent and empty values."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }


class UserResponse(RegistryBaseModel):
    """User as returned by the API and stored in the cache. Never holds the password."""

    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class UserSearchParams(PaginationParams):
    """List filters and sorting on top of pagination."""

    query: str | None = Field(default=None, description="Match on username, email or names")
    is_active: bool | None = None
    sort_by: UserSortField = UserSortField.CREATED_AT
    sort_desc: bool = False
