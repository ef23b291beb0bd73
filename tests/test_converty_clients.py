try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from converty_bridge.clients.converty_api import ConvertyAPIClient
from converty_bridge.clients.converty_auth import ConvertyOAuthClient
from converty_bridge.core.config import ConvertySettings, OAuthSettings
from converty_bridge.core.errors import (
    MalformedTokenResponse,
    NetworkError,
    TokenExchangeFailed,
)
from converty_bridge.schemas.orders import OrderQuery


def _settings(**overrides) -> ConvertySettings:
    values = {
        "CONVERTY_CLIENT_ID": "client",
        "CONVERTY_CLIENT_SECRET": "secret",
        "CONVERTY_REDIRECT_URI": "https://bridge.example.com/api/v1/callback",
        "CONVERTY_TOKEN_URL": "https://auth.example.com/oauth2/token",
        "CONVERTY_AUTH_URL": "https://auth.example.com/oauth2/authorize",
        "CONVERTY_API_BASE_URL": "https://api.example.com/api/v1",
    }
    values.update(overrides)
    return ConvertySettings(**values)


class RecordingHandler:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _oauth_client(handler: RecordingHandler) -> ConvertyOAuthClient:
    return ConvertyOAuthClient(
        _settings(), OAuthSettings(), transport=httpx.MockTransport(handler)
    )


def test_authorization_url_carries_flow_parameters() -> None:
    client = ConvertyOAuthClient(_settings(), OAuthSettings())

    url = client.build_authorization_url(state="nonce-123")

    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    assert url.startswith("https://auth.example.com/oauth2/authorize?")
    assert params["client_id"] == ["client"]
    assert params["redirect_uri"] == ["https://bridge.example.com/api/v1/callback"]
    assert params["response_type"] == ["code"]
    assert params["scope"] == ["read-products create-orders update-orders read-orders"]
    assert params["state"] == ["nonce-123"]


@pytest.mark.asyncio
async def test_exchange_posts_form_encoded_authorization_code() -> None:
    handler = RecordingHandler(
        httpx.Response(
            200,
            json={
                "access_token": "a-token",
                "refresh_token": "r-token",
                "expires_in": 3600,
                "token_type": "Bearer",
            },
        )
    )

    grant = await _oauth_client(handler).exchange_authorization_code("the-code")

    assert grant.access_token == "a-token"
    assert grant.refresh_token == "r-token"
    assert grant.expires_in == 3600
    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://auth.example.com/oauth2/token"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    form = parse_qs(request.content.decode())
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["the-code"]
    assert form["client_secret"] == ["secret"]


@pytest.mark.asyncio
async def test_refresh_posts_refresh_token_grant() -> None:
    handler = RecordingHandler(
        httpx.Response(200, json={"access_token": "new", "expires_in": 60})
    )

    grant = await _oauth_client(handler).refresh_token("stored-refresh")

    assert grant.access_token == "new"
    assert grant.refresh_token is None
    form = parse_qs(handler.requests[0].content.decode())
    assert form["grant_type"] == ["refresh_token"]
    assert form["refresh_token"] == ["stored-refresh"]


@pytest.mark.asyncio
async def test_non_200_token_response_embeds_upstream_details() -> None:
    handler = RecordingHandler(httpx.Response(400, text='{"error":"invalid_grant"}'))

    with pytest.raises(TokenExchangeFailed) as excinfo:
        await _oauth_client(handler).exchange_authorization_code("bad-code")

    assert excinfo.value.upstream_status == 400
    assert "400" in excinfo.value.message
    assert "invalid_grant" in excinfo.value.message


@pytest.mark.asyncio
async def test_undecodable_token_response_is_malformed() -> None:
    handler = RecordingHandler(httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(MalformedTokenResponse):
        await _oauth_client(handler).refresh_token("stored-refresh")


@pytest.mark.asyncio
async def test_exchange_without_refresh_token_is_malformed() -> None:
    handler = RecordingHandler(
        httpx.Response(200, json={"access_token": "a-token", "expires_in": 3600})
    )

    with pytest.raises(MalformedTokenResponse):
        await _oauth_client(handler).exchange_authorization_code("the-code")


@pytest.mark.asyncio
async def test_unreachable_token_endpoint_raises_exchange_failure() -> None:
    handler = RecordingHandler(httpx.ConnectError("connection refused"))

    with pytest.raises(TokenExchangeFailed):
        await _oauth_client(handler).refresh_token("stored-refresh")


@pytest.mark.asyncio
async def test_call_raw_attaches_bearer_and_accept_headers() -> None:
    handler = RecordingHandler(httpx.Response(200, content=b'{"data":[]}'))
    client = ConvertyAPIClient(
        _settings(), OAuthSettings(), transport=httpx.MockTransport(handler)
    )

    status_code, body = await client.fetch_products("token-xyz")

    assert status_code == 200
    assert body == b'{"data":[]}'
    request = handler.requests[0]
    assert str(request.url) == "https://api.example.com/api/v1/products"
    assert request.headers["authorization"] == "Bearer token-xyz"
    assert request.headers["accept"] == "application/json"


@pytest.mark.asyncio
async def test_call_raw_returns_error_statuses_untouched() -> None:
    handler = RecordingHandler(httpx.Response(401, text="expired"))
    client = ConvertyAPIClient(
        _settings(), OAuthSettings(), transport=httpx.MockTransport(handler)
    )

    status_code, body = await client.call_raw("GET", "/products", "token")

    assert (status_code, body) == (401, b"expired")
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_call_raw_wraps_transport_failures() -> None:
    handler = RecordingHandler(httpx.ReadTimeout("timed out"))
    client = ConvertyAPIClient(
        _settings(), OAuthSettings(), transport=httpx.MockTransport(handler)
    )

    with pytest.raises(NetworkError):
        await client.call_raw("GET", "/products", "token")


@pytest.mark.asyncio
async def test_fetch_orders_encodes_filters_and_store() -> None:
    handler = RecordingHandler(httpx.Response(200, json={"success": True, "data": []}))
    client = ConvertyAPIClient(
        _settings(CONVERTY_STORE_ID="store-1"),
        OAuthSettings(),
        transport=httpx.MockTransport(handler),
    )
    query = OrderQuery(
        page=2,
        limit=25,
        status="pending",
        archived=False,
        deleted=True,
        search="alice",
        delivery_company="aramex",
    )

    await client.fetch_orders("token", query)

    params = dict(handler.requests[0].url.params)
    assert params == {
        "store_id": "store-1",
        "page": "2",
        "limit": "25",
        "status": "pending",
        "archived": "false",
        "deleted": "true",
        "search": "alice",
        "deliveryCompany": "aramex",
    }
