"""User Registry repositories."""

from .cached_user_repository import CachedUserRepository, UserCache, UserStore
from .user_repository import UserRepository

__all__ = [
    "CachedUserRepository",
    "UserCache",
    "UserRepository",
    "UserStore",
]
