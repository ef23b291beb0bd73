"""
Domain models for OAuth token persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenRecord(BaseModel):
    """Represents the single token row stored for a user."""

    user_id: str = Field(..., description="Owner of the token pair.")
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Access-token lifetime in seconds.")
    issued_at: datetime
    expires_at: datetime
    refresh_issued_at: datetime
    refresh_expires_at: Optional[datetime] = Field(
        None, description="None when no refresh lifetime is known."
    )

    def is_access_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at

    def is_refresh_expired(self, now: Optional[datetime] = None) -> bool:
        if self.refresh_expires_at is None:
            return False
        return (now or utcnow()) > self.refresh_expires_at


__all__ = ["TokenRecord", "utcnow"]
