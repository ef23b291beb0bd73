"""
Error taxonomy shared by the token lifecycle, the partner API client and the
local stores.

Each error carries the HTTP status the REST front end answers with; the
console prints the message and returns to its menu.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional


class BridgeError(Exception):
    """Base class for every error surfaced to a caller of the bridge."""

    http_status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(BridgeError):
    """Raised when required configuration is missing or invalid."""


class AuthError(BridgeError):
    """Failures of the OAuth token lifecycle."""

    http_status = HTTPStatus.UNAUTHORIZED


class InvalidState(AuthError):
    http_status = HTTPStatus.BAD_REQUEST


class MissingCode(AuthError):
    http_status = HTTPStatus.BAD_REQUEST


class NoTokenFound(AuthError):
    pass


class NoRefreshToken(AuthError):
    http_status = HTTPStatus.BAD_REQUEST


class RefreshTokenExpired(AuthError):
    pass


class TokenExchangeFailed(AuthError):
    """The token endpoint answered with a non-200 status or was unreachable."""

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class MalformedTokenResponse(AuthError):
    """The token endpoint answered 200 with a body we cannot use."""


class UpstreamError(BridgeError):
    """The partner API answered with an unexpected status or payload."""

    http_status = HTTPStatus.BAD_GATEWAY

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class NetworkError(UpstreamError):
    """The partner API could not be reached."""


class UpstreamRejected(UpstreamError):
    """The partner API envelope reported ``success: false``."""


class StorageError(BridgeError):
    """The local database failed to read or write."""


class RecordNotFound(BridgeError):
    http_status = HTTPStatus.NOT_FOUND


__all__ = [
    "AuthError",
    "BridgeError",
    "ConfigError",
    "InvalidState",
    "MalformedTokenResponse",
    "MissingCode",
    "NetworkError",
    "NoRefreshToken",
    "NoTokenFound",
    "RecordNotFound",
    "RefreshTokenExpired",
    "StorageError",
    "TokenExchangeFailed",
    "UpstreamError",
    "UpstreamRejected",
]
