"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_api_client,
    get_oauth_client,
    get_order_service,
    get_record_store,
    get_state_store,
    get_token_service,
    get_token_store,
)

__all__ = [
    "get_api_client",
    "get_oauth_client",
    "get_order_service",
    "get_record_store",
    "get_state_store",
    "get_token_service",
    "get_token_store",
]
