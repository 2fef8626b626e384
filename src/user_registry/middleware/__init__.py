"""User Registry middleware."""

from .observability import ObservabilityMiddleware

__all__ = ["ObservabilityMiddleware"]
