"""API routers for the User Registry."""

from . import health, users
from .errors import register_exception_handlers

__all__ = ["health", "users", "register_exception_handlers"]
