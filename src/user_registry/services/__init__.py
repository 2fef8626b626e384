"""User Registry services."""

from .passwords import hash_password, verify_password
from .user_service import UserService

__all__ = [
    "UserService",
    "hash_password",
    "verify_password",
]
