"""Public schema exports."""

from .auth import TokenGrant, TokenResponse
from .orders import Customer, Order, OrderQuery, OrdersEnvelope
from .records import InteractionRecord, RecordCreateRequest

__all__ = [
    "Customer",
    "InteractionRecord",
    "Order",
    "OrderQuery",
    "OrdersEnvelope",
    "RecordCreateRequest",
    "TokenGrant",
    "TokenResponse",
]
