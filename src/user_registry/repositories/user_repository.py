"""User data access repository (system of record)."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import UserModel
from shared.errors import AlreadyExistsError, StoreError
from shared.observability import get_logger

from ..schemas.user import UserSearchParams, UserSortField

logger = get_logger(__name__)

SORT_COLUMNS = {
    UserSortField.USERNAME: UserModel.username,
    UserSortField.EMAIL: UserModel.email,
    UserSortField.FIRST_NAME: UserModel.first_name,
    UserSortField.LAST_NAME: UserModel.last_name,
    UserSortField.IS_ACTIVE: UserModel.is_active,
    UserSortField.CREATED_AT: UserModel.created_at,
    UserSortField.UPDATED_AT: UserModel.updated_at,
}


class UserRepository:
    """Repository for user data access.

    Soft-deleted rows are invisible to every read. Unique constraint
    violations surface as ``AlreadyExistsError``; any other database
    failure as ``StoreError``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict[str, Any]) -> UserModel:
        """Create a new user."""
        user = UserModel(**data)
        self.session.add(user)
        await self._commit("create")
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: int) -> UserModel | None:
        """Get user by ID."""
        return await self._first(select(UserModel).where(UserModel.id == user_id))

    async def get_by_username(self, username: str) -> UserModel | None:
        """Get user by username."""
        return await self._first(select(UserModel).where(UserModel.username == username))

    async def list(self, params: UserSearchParams) -> tuple[list[UserModel], int]:
        """List users with filtering, sorting and pagination."""
        query = select(UserModel).where(UserModel.deleted_at.is_(None))

        if params.query:
            pattern = f"%{params.query}%"
            query = query.where(
                or_(
                    UserModel.username.ilike(pattern),
                    UserModel.email.ilike(pattern),
                    UserModel.first_name.ilike(pattern),
                    UserModel.last_name.ilike(pattern),
                )
            )
        if params.is_active is not None:
            query = query.where(UserModel.is_active == params.is_active)

        column = SORT_COLUMNS[UserSortField(params.sort_by)]
        order = column.desc() if params.sort_desc else column.asc()

        try:
            count_query = select(func.count()).select_from(query.subquery())
            total = (await self.session.execute(count_query)).scalar() or 0

            query = query.order_by(order, UserModel.id).offset(params.offset).limit(params.limit)
            result = await self.session.execute(query)
            users = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError("Failed to list users", details=str(e)) from e

        return users, total

    async def update(self, user_id: int, changes: dict[str, Any]) -> UserModel | None:
        """Update a user from its current stored state."""
        user = await self.get_by_id(user_id)
        if not user:
            return None

        for key, value in changes.items():
            setattr(user, key, value)
        user.updated_at = datetime.now(UTC)
        await self._commit("update")
        await self.session.refresh(user)
        return user

    async def soft_delete(self, user_id: int) -> bool:
        """Mark a user deleted. Returns False if there was nothing to delete."""
        user = await self.get_by_id(user_id)
        if not user:
            return False

        user.deleted_at = datetime.now(UTC)
        await self._commit("delete")
        return True

    async def _first(self, query) -> UserModel | None:
        try:
            result = await self.session.execute(query.where(UserModel.deleted_at.is_(None)))
        except SQLAlchemyError as e:
            raise StoreError("Failed to read user", details=str(e)) from e
        return result.scalar_one_or_none()

    async def _commit(self, operation: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info("User write rejected", operation=operation, reason="unique constraint")
            raise AlreadyExistsError("User with this username or email already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(f"Failed to {operation} user", details=str(e)) from e
