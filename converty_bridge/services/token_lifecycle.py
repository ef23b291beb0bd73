"""
Acquire, persist and renew Converty OAuth tokens.

A user moves through ``Unauthenticated -> Valid -> Stale -> Valid`` as codes
are exchanged and access tokens refreshed, and ends up ``Expired`` once the
refresh token itself lapses; only a new authorization leaves that state.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from converty_bridge.core.errors import (
    InvalidState,
    MissingCode,
    NoRefreshToken,
    NoTokenFound,
    RefreshTokenExpired,
)
from converty_bridge.models.token import TokenRecord
from converty_bridge.schemas.auth import TokenGrant

logger = logging.getLogger(__name__)


class TokenLifecycleService:
    """Maintains one valid access token per user.

    Refreshes are single-flight per user: callers that observe the same stale
    token wait on one lock, and whoever arrives after the token was replaced
    reuses the stored result instead of calling the token endpoint again.
    """

    def __init__(
        self,
        *,
        token_store: Any,
        state_store: Any,
        oauth_client: Any,
        default_user_id: str = "user1",
        refresh_token_ttl_seconds: Optional[int] = None,
    ) -> None:
        self._tokens = token_store
        self._states = state_store
        self._oauth = oauth_client
        self.default_user_id = default_user_id
        self._refresh_ttl = refresh_token_ttl_seconds
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    def start_authorization(self, user_id: Optional[str] = None) -> str:
        """Issue a pending state for ``user_id`` and return the consent URL."""
        state = self._states.issue(user_id or self.default_user_id)
        return self._oauth.build_authorization_url(state=state)

    async def exchange_code(self, code: Optional[str], state: Optional[str]) -> TokenRecord:
        """Complete the authorization-code grant and upsert the user's tokens."""
        user_id = self._states.consume(state) if state else None
        if user_id is None:
            raise InvalidState(
                f"Invalid state parameter: received={state!r} does not match a "
                "pending authorization"
            )
        if not code:
            raise MissingCode("No authorization code received")

        grant = await self._oauth.exchange_authorization_code(code)
        record = self._record_from_grant(user_id, grant, previous=None)
        self._tokens.upsert(record)
        logger.info(
            "Stored new token pair for user %s (expires at %s)",
            user_id,
            record.expires_at.isoformat(),
        )
        return record

    async def get_valid_access_token(self, user_id: Optional[str] = None) -> str:
        """Return a usable access token, refreshing it first when stale."""
        user_id = user_id or self.default_user_id
        record = self._load(user_id)
        if not record.is_access_expired():
            return record.access_token
        logger.info("Access token for user %s expired at %s", user_id, record.expires_at)
        refreshed = await self.refresh_if_current(user_id, record.access_token)
        return refreshed.access_token

    async def refresh_token(self, user_id: Optional[str] = None) -> TokenRecord:
        """Unconditionally renew the user's access token."""
        user_id = user_id or self.default_user_id
        async with self._lock_for(user_id):
            return await self._refresh_locked(self._load(user_id))

    async def refresh_if_current(self, user_id: str, stale_access_token: str) -> TokenRecord:
        """Renew the token unless another caller already replaced ``stale_access_token``."""
        async with self._lock_for(user_id):
            record = self._load(user_id)
            if record.access_token != stale_access_token:
                logger.debug("Reusing token refreshed concurrently for user %s", user_id)
                return record
            return await self._refresh_locked(record)

    def _load(self, user_id: str) -> TokenRecord:
        record = self._tokens.get(user_id)
        if record is None:
            raise NoTokenFound("No token found, please re-authenticate via /login")
        return record

    async def _refresh_locked(self, record: TokenRecord) -> TokenRecord:
        if not record.refresh_token:
            raise NoRefreshToken(
                "No refresh token available, please re-authenticate via /login"
            )
        if record.is_refresh_expired():
            raise RefreshTokenExpired(
                f"Refresh token has expired at: {record.refresh_expires_at.isoformat()}, "
                "please re-authenticate via /login"
            )

        grant = await self._oauth.refresh_token(record.refresh_token)
        refreshed = self._record_from_grant(record.user_id, grant, previous=record)
        self._tokens.update_fields(
            record.user_id,
            refreshed.model_dump(exclude={"user_id"}),
        )
        logger.info(
            "Refreshed access token for user %s (expires at %s)",
            record.user_id,
            refreshed.expires_at.isoformat(),
        )
        return refreshed

    def _record_from_grant(
        self,
        user_id: str,
        grant: TokenGrant,
        *,
        previous: Optional[TokenRecord],
    ) -> TokenRecord:
        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(seconds=grant.expires_in)
        refresh_expires_at: Optional[datetime] = None
        if grant.refresh_expires_in:
            refresh_expires_at = issued_at + timedelta(seconds=grant.refresh_expires_in)
        elif self._refresh_ttl:
            refresh_expires_at = issued_at + timedelta(seconds=self._refresh_ttl)
        # Otherwise the lifetime is unknown and the token endpoint decides.
        refresh_token = grant.refresh_token or (previous.refresh_token if previous else "")
        return TokenRecord(
            user_id=user_id,
            access_token=grant.access_token,
            refresh_token=refresh_token,
            token_type=grant.token_type,
            expires_in=grant.expires_in,
            issued_at=issued_at,
            expires_at=expires_at,
            refresh_issued_at=issued_at,
            refresh_expires_at=refresh_expires_at,
        )


__all__ = ["TokenLifecycleService"]
