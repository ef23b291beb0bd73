"""
Structured order listing on top of the raw partner API client.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import status
from pydantic import ValidationError

from converty_bridge.clients.converty_api import ConvertyAPIClient
from converty_bridge.core.errors import UpstreamError, UpstreamRejected
from converty_bridge.schemas.orders import Order, OrderQuery, OrdersEnvelope, order_from_item
from converty_bridge.services.token_lifecycle import TokenLifecycleService

logger = logging.getLogger(__name__)


class OrderService:
    """Fetch Converty orders, recovering once from a rejected access token."""

    def __init__(
        self,
        token_service: TokenLifecycleService,
        api_client: ConvertyAPIClient,
    ) -> None:
        self._tokens = token_service
        self._api = api_client

    async def list_orders(
        self, query: OrderQuery, *, user_id: Optional[str] = None
    ) -> List[Order]:
        user_id = user_id or self._tokens.default_user_id
        access_token = await self._tokens.get_valid_access_token(user_id)
        status_code, body = await self._api.fetch_orders(access_token, query)

        if status_code == status.HTTP_401_UNAUTHORIZED:
            logger.info("Orders request rejected with 401; refreshing once and retrying")
            record = await self._tokens.refresh_if_current(user_id, access_token)
            status_code, body = await self._api.fetch_orders(record.access_token, query)

        if status_code != status.HTTP_200_OK:
            text = body.decode("utf-8", errors="replace")
            raise UpstreamError(
                f"API request failed with status {status_code}: {text}",
                upstream_status=status_code,
                upstream_body=text,
            )

        try:
            envelope = OrdersEnvelope.model_validate_json(body)
        except ValidationError as exc:
            raise UpstreamError(f"Failed to parse orders response: {exc}") from exc

        if not envelope.success:
            raise UpstreamRejected(f"Failed to fetch orders: {envelope.message}")

        return [order_from_item(item) for item in envelope.data or []]


__all__ = ["OrderService"]
