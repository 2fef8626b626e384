"""Request/Response schemas for the User Registry API."""

from .user import (
    UserCreateRequest,
    UserResponse,
    UserSearchParams,
    UserSortField,
    UserUpdateRequest,
)

__all__ = [
    "UserCreateRequest",
    "UserUpdateRequest",
    "UserResponse",
    "UserSearchParams",
    "UserSortField",
]
