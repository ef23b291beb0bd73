"""Authenticated request executor for the Converty partner API."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import httpx

from converty_bridge.core.config import ConvertySettings, OAuthSettings
from converty_bridge.core.errors import NetworkError
from converty_bridge.schemas.orders import OrderQuery

logger = logging.getLogger(__name__)


class ConvertyAPIClient:
    """Issue single bearer-authenticated requests against the partner API.

    The client never retries and never refreshes tokens; callers hand it a
    token they already know to be valid.
    """

    PRODUCTS_PATH = "/products"
    ORDERS_PATH = "/orders"

    def __init__(
        self,
        converty_settings: ConvertySettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = converty_settings.api_base_url.rstrip("/")
        self._store_id = converty_settings.store_id
        self._timeout = oauth_settings.http_timeout_seconds
        self._transport = transport

    async def call_raw(
        self,
        method: str,
        path: str,
        access_token: str,
        *,
        params: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, bytes]:
        """Return the upstream ``(status, body)`` without interpreting it."""
        url = path if path.startswith("http") else f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method, url, headers=headers, params=params
                )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(
                f"Failed to make API request to Converty: {exc}"
            ) from exc
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response.status_code, response.content

    async def fetch_products(self, access_token: str) -> Tuple[int, bytes]:
        return await self.call_raw("GET", self.PRODUCTS_PATH, access_token)

    async def fetch_orders(
        self, access_token: str, query: OrderQuery
    ) -> Tuple[int, bytes]:
        return await self.call_raw(
            "GET",
            self.ORDERS_PATH,
            access_token,
            params=query.to_params(self._store_id),
        )


__all__ = ["ConvertyAPIClient"]
