"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The console front end calls the same factories, so both front ends share one
token lifecycle service and therefore one set of refresh locks.
"""

from functools import lru_cache

from fastapi import Depends

from converty_bridge.clients import (
    ConvertyAPIClient,
    ConvertyOAuthClient,
    SQLiteRecordStore,
    SQLiteStateStore,
    SQLiteTokenStore,
)
from converty_bridge.core.config import get_settings
from converty_bridge.services import OrderService, TokenLifecycleService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_store() -> SQLiteTokenStore:
    """Provide the shared SQLite token store."""
    return SQLiteTokenStore(_settings().database.path)


@lru_cache()
def get_state_store() -> SQLiteStateStore:
    """Provide the pending OAuth state store."""
    settings = _settings()
    return SQLiteStateStore(
        settings.database.path, ttl_seconds=settings.oauth.state_ttl_seconds
    )


@lru_cache()
def get_record_store() -> SQLiteRecordStore:
    """Provide the interaction record store."""
    return SQLiteRecordStore(_settings().database.path)


@lru_cache()
def get_oauth_client() -> ConvertyOAuthClient:
    """Create a singleton Converty OAuth client."""
    settings = _settings()
    return ConvertyOAuthClient(settings.converty, settings.oauth)


@lru_cache()
def get_api_client() -> ConvertyAPIClient:
    """Create a singleton Converty partner API client."""
    settings = _settings()
    return ConvertyAPIClient(settings.converty, settings.oauth)


@lru_cache()
def get_token_service() -> TokenLifecycleService:
    """Provide the process-wide token lifecycle manager."""
    settings = _settings()
    return TokenLifecycleService(
        token_store=get_token_store(),
        state_store=get_state_store(),
        oauth_client=get_oauth_client(),
        default_user_id=settings.default_user_id,
        refresh_token_ttl_seconds=settings.converty.refresh_token_ttl_seconds,
    )


def get_order_service(
    token_service: TokenLifecycleService = Depends(get_token_service),
    api_client: ConvertyAPIClient = Depends(get_api_client),
) -> OrderService:
    """Build an order service on top of the shared token manager."""
    return OrderService(token_service, api_client)


__all__ = [
    "get_api_client",
    "get_oauth_client",
    "get_order_service",
    "get_record_store",
    "get_state_store",
    "get_token_service",
    "get_token_store",
]
