"""User CRUD API endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from shared.models import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, APIResponse
from shared.observability import get_logger

from ..repositories import CachedUserRepository, UserRepository
from ..schemas.user import (
    UserCreateRequest,
    UserSearchParams,
    UserSortField,
    UserUpdateRequest,
)
from ..services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter()


async def get_user_service(request: Request) -> AsyncIterator[UserService]:
    """Dependency providing a UserService bound to this request.

    Opens one database session per request and hands the request's root
    span to the service so its operations become child spans.
    """
    state = request.app.state
    settings = state.settings
    async with state.session_factory() as session:
        repository = CachedUserRepository(
            store=UserRepository(session),
            cache=state.redis,
            ttl_seconds=settings.cache.ttl_seconds,
            key_prefix=settings.cache.entity_prefix,
        )
        yield UserService(
            repository,
            publisher=getattr(state, "publisher", None),
            parent_span=getattr(request.state, "span", None),
        )


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.post(
    "/users",
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(user_data: UserCreateRequest, service: UserServiceDep):
    """Create a user. Duplicate username or email is rejected with 409."""
    user = await service.create(user_data)
    return APIResponse.ok(201, "User created successfully", data=user).to_json()


@router.get(
    "/users",
    summary="List users",
    description="List users with search, filtering, sorting and pagination.",
)
async def list_users(
    service: UserServiceDep,
    query: str | None = Query(None, description="Match on username, email or names"),
    is_active: bool | None = Query(None, alias="isActive", description="Filter by active flag"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    sort_by: UserSortField = Query(UserSortField.CREATED_AT, alias="sortBy"),
    sort_desc: bool = Query(False, alias="sortDesc"),
):
    params = UserSearchParams(
        query=query,
        is_active=is_active,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_desc=sort_desc,
    )
    users, pagination = await service.get_all(params)
    return APIResponse.ok(
        200, "Users retrieved successfully", data=users, pagination=pagination
    ).to_json()


@router.get("/users/username/{username}", summary="Get a user by username")
async def get_user_by_username(username: str, service: UserServiceDep):
    user = await service.get_by_username(username)
    return APIResponse.ok(200, "User retrieved successfully", data=user).to_json()


@router.get("/users/{user_id}", summary="Get a user by ID")
async def get_user(user_id: int, service: UserServiceDep):
    """Get a user, served from the cache when possible."""
    user = await service.get_by_id(user_id)
    return APIResponse.ok(200, "User retrieved successfully", data=user).to_json()


@router.put("/users/{user_id}", summary="Update a user")
async def update_user(user_id: int, user_data: UserUpdateRequest, service: UserServiceDep):
    """Partially update a user. Absent or empty fields are left untouched."""
    user = await service.update(user_id, user_data)
    return APIResponse.ok(200, "User updated successfully", data=user).to_json()


@router.delete("/users/{user_id}", summary="Delete a user")
async def delete_user(user_id: int, service: UserServiceDep):
    """Soft delete a user."""
    await service.delete(user_id)
    return APIResponse.ok(200, "User deleted successfully").to_json()
