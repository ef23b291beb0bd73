"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TokenGrant(BaseModel):
    """Token endpoint payload returned by Converty for both grant types."""

    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = Field(
        None, description="Absent when the server does not rotate refresh tokens."
    )
    expires_in: int = Field(..., gt=0, description="Access-token lifetime in seconds.")
    token_type: str = "Bearer"
    refresh_expires_in: Optional[int] = Field(
        None, gt=0, description="Refresh-token lifetime when the server reports one."
    )


class TokenResponse(BaseModel):
    """Body returned by the refresh endpoints."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str


__all__ = ["TokenGrant", "TokenResponse"]
