"""Service layer exports."""

from .orders import OrderService
from .token_lifecycle import TokenLifecycleService

__all__ = ["OrderService", "TokenLifecycleService"]
