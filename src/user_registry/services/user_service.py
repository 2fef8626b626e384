"""User service for CRUD operations.

Each mutation runs in a fixed order: store write, then cache write (both
inside the cache-aside repository), then event submission. Event
submission never waits for delivery and never fails the mutation.
"""

from __future__ import annotations

from typing import Any

from shared.events import EventPublisher
from shared.models import DomainEvent, EventCategory, EventType, PaginationMeta
from shared.observability import Span, SpanManager, get_logger

from ..repositories.cached_user_repository import CachedUserRepository
from ..schemas.user import (
    UserCreateRequest,
    UserResponse,
    UserSearchParams,
    UserUpdateRequest,
)
from .passwords import hash_password

logger = get_logger(__name__)


class UserService:
    """Service for user CRUD operations.

    Args:
        repository: Cache-aside access to users
        publisher: Event publisher, or None to run without events
        span_manager: Creates child spans for each operation
        parent_span: Root span of the current request, if any
    """

    def __init__(
        self,
        repository: CachedUserRepository,
        publisher: EventPublisher | None = None,
        span_manager: SpanManager | None = None,
        parent_span: Span | None = None,
    ):
        self.repository = repository
        self.publisher = publisher
        self.spans = span_manager or SpanManager()
        self.parent_span = parent_span

    async def create(self, request: UserCreateRequest) -> UserResponse:
        """Create a user and announce it as ``user.created``."""
        with self.spans.span(
            self.parent_span, "user.create", description="Create new user", username=request.username
        ) as span:
            user = await self.repository.create(
                {
                    "username": request.username,
                    "email": request.email,
                    "password_hash": hash_password(request.password),
                    "first_name": request.first_name,
                    "last_name": request.last_name,
                    "is_active": True,
                }
            )
            span.set_attribute("user_id", user.id)

        logger.info("User created", user_id=user.id, username=user.username)
        self._emit(EventType.CREATED, user.id, _event_data(user))
        return user

    async def get_by_id(self, user_id: int) -> UserResponse:
        """Get user by ID through the cache."""
        with self.spans.span(
            self.parent_span, "user.get_by_id", description="Get user by ID", user_id=user_id
        ):
            return await self.repository.get(user_id)

    async def get_by_username(self, username: str) -> UserResponse:
        """Get user by username from the store."""
        with self.spans.span(
            self.parent_span,
            "user.get_by_username",
            description="Get user by username",
            username=username,
        ):
            return await self.repository.get_by_username(username)

    async def get_all(
        self, params: UserSearchParams
    ) -> tuple[list[UserResponse], PaginationMeta]:
        """List users with the pagination window of the requested page."""
        with self.spans.span(
            self.parent_span,
            "user.get_all",
            description="List users",
            page=params.page,
            limit=params.limit,
        ) as span:
            users, total = await self.repository.list(params)
            span.set_attribute("total_items", total)

        return users, PaginationMeta.from_counts(params.page, params.limit, total)

    async def update(self, user_id: int, request: UserUpdateRequest) -> UserResponse:
        """Apply a partial update and announce it as ``user.updated``."""
        changes = request.changes()
        with self.spans.span(
            self.parent_span,
            "user.update",
            description="Update user",
            user_id=user_id,
            fields=sorted(changes),
        ):
            user = await self.repository.update(user_id, changes)

        logger.info("User updated", user_id=user_id, fields=sorted(changes))
        self._emit(EventType.UPDATED, user_id, _event_data(user))
        return user

    async def delete(self, user_id: int) -> None:
        """Soft delete a user and announce it as ``user.deleted``."""
        with self.spans.span(
            self.parent_span, "user.delete", description="Delete user", user_id=user_id
        ):
            await self.repository.delete(user_id)

        logger.info("User deleted", user_id=user_id)
        self._emit(EventType.DELETED, user_id, {"id": user_id})

    def _emit(self, event_type: EventType, user_id: int, data: dict[str, Any]) -> None:
        if self.publisher is None:
            return
        self.publisher.submit(
            DomainEvent(
                category=EventCategory.USER.value,
                event_type=event_type.value,
                subject_id=user_id,
                data=data,
            )
        )


def _event_data(user: UserResponse) -> dict[str, Any]:
    return user.model_dump(mode="json", by_alias=True)
