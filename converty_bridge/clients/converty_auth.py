"""
Converty OAuth utilities.

These helpers build the consent URL and talk to the token endpoint for both
the authorization-code and the refresh-token grants.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import status
from pydantic import ValidationError

from converty_bridge.core.config import ConvertySettings, OAuthSettings
from converty_bridge.core.errors import MalformedTokenResponse, TokenExchangeFailed
from converty_bridge.schemas.auth import TokenGrant

logger = logging.getLogger(__name__)


class ConvertyOAuthClient:
    """Build Converty authorization URLs and exchange codes for tokens."""

    def __init__(
        self,
        converty_settings: ConvertySettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._converty = converty_settings
        self._oauth = oauth_settings
        self._transport = transport

    def build_authorization_url(self, state: str) -> str:
        """Construct the Converty consent URL."""
        params = {
            "client_id": self._converty.client_id,
            "redirect_uri": self._converty.redirect_uri,
            "response_type": "code",
            "scope": self._converty.scope,
            "state": state,
        }
        return f"{self._converty.auth_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access/refresh token pair."""
        grant = await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self._converty.client_id,
                "client_secret": self._converty.client_secret,
                "redirect_uri": self._converty.redirect_uri,
            },
            action="Token request",
        )
        if not grant.refresh_token:
            raise MalformedTokenResponse(
                "Incomplete token payload returned from Converty: missing refresh_token"
            )
        return grant

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Obtain a new access token using a stored refresh token."""
        return await self._request_token(
            {
                "grant_type": "refresh_token",
                "client_id": self._converty.client_id,
                "client_secret": self._converty.client_secret,
                "refresh_token": refresh_token,
            },
            action="Refresh request",
        )

    async def _request_token(self, payload: Dict[str, Any], *, action: str) -> TokenGrant:
        try:
            async with httpx.AsyncClient(
                timeout=self._oauth.http_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    self._converty.token_url,
                    data=payload,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise TokenExchangeFailed(f"{action} could not reach Converty: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            logger.warning(
                "%s failed with status %s", action, response.status_code
            )
            raise TokenExchangeFailed(
                f"{action} failed with status {response.status_code}: {response.text}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        try:
            return TokenGrant.model_validate(response.json())
        except ValidationError as exc:
            raise MalformedTokenResponse(
                f"Incomplete token payload returned from Converty: {exc.error_count()} invalid field(s)"
            ) from exc
        except ValueError as exc:
            raise MalformedTokenResponse(f"Failed to parse token response: {exc}") from exc


__all__ = ["ConvertyOAuthClient"]
