"""
FastAPI routes for the Converty bridge.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from converty_bridge.core.errors import BridgeError, UpstreamError
from converty_bridge.dependencies import (
    get_api_client,
    get_order_service,
    get_record_store,
    get_token_service,
)
from converty_bridge.schemas import (
    InteractionRecord,
    Order,
    OrderQuery,
    RecordCreateRequest,
    TokenResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _http_error(exc: BridgeError) -> HTTPException:
    logger.warning("Error: %s (Status: %d)", exc.message, exc.http_status)
    return HTTPException(status_code=exc.http_status, detail=exc.message)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/login")
async def start_login(
    token_service: Annotated[Any, Depends(get_token_service)],
    user_id: Optional[str] = Query(
        default=None, description="User starting the flow; defaults to the configured user."
    ),
) -> RedirectResponse:
    """Redirect the browser to the Converty consent screen with a fresh state."""
    try:
        authorization_url = token_service.start_authorization(user_id)
    except BridgeError as exc:
        raise _http_error(exc) from exc
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.FOUND)


@router.get("/api/v1/callback", response_class=PlainTextResponse)
async def handle_oauth_callback(
    token_service: Annotated[Any, Depends(get_token_service)],
    code: Optional[str] = Query(default=None, description="Authorization code."),
    state: Optional[str] = Query(default=None, description="OAuth state token."),
    error: Optional[str] = Query(default=None, description="Error reported by Converty."),
) -> PlainTextResponse:
    """Complete the code exchange and persist the resulting tokens."""
    if error:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=f"OAuth error: {error}")
    try:
        record = await token_service.exchange_code(code, state)
    except BridgeError as exc:
        raise _http_error(exc) from exc

    return PlainTextResponse(
        "Authorization successful! "
        f"Access Token: {record.access_token}\nRefresh Token: {record.refresh_token}"
    )


@router.post("/refresh", response_model=TokenResponse)
@router.post("/GetAccessToken", response_model=TokenResponse)
async def refresh_access_token(
    token_service: Annotated[Any, Depends(get_token_service)],
    user_id: Optional[str] = Query(default=None),
) -> TokenResponse:
    """Force a refresh of the stored access token."""
    try:
        record = await token_service.refresh_token(user_id)
    except BridgeError as exc:
        raise _http_error(exc) from exc
    return TokenResponse(
        access_token=record.access_token,
        refresh_token=record.refresh_token,
        expires_in=record.expires_in,
        token_type=record.token_type,
    )


@router.get("/get-products")
async def get_products(
    token_service: Annotated[Any, Depends(get_token_service)],
    api_client: Annotated[Any, Depends(get_api_client)],
) -> Response:
    """Pass the partner product list through unchanged."""
    try:
        access_token = await token_service.get_valid_access_token()
        status_code, body = await api_client.fetch_products(access_token)
        if status_code != HTTPStatus.OK:
            text = body.decode("utf-8", errors="replace")
            raise UpstreamError(
                f"API request failed with status {status_code}: {text}",
                upstream_status=status_code,
                upstream_body=text,
            )
    except BridgeError as exc:
        raise _http_error(exc) from exc
    return Response(content=body, media_type="application/json")


@router.get("/api/v1/orders", response_model=List[Order])
async def list_orders(
    order_service: Annotated[Any, Depends(get_order_service)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    status: Optional[str] = Query(default=None),
    archived: Optional[bool] = Query(default=None),
    abandoned: Optional[bool] = Query(default=None),
    deleted: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None),
    product: Optional[str] = Query(default=None),
    delivery_company: Optional[str] = Query(default=None, alias="deliveryCompany"),
) -> List[Order]:
    """List Converty orders matching the supplied filters."""
    query = OrderQuery(
        page=page,
        limit=limit,
        status=status,
        archived=archived,
        abandoned=abandoned,
        deleted=deleted,
        search=search,
        product=product,
        delivery_company=delivery_company,
    )
    try:
        return await order_service.list_orders(query)
    except BridgeError as exc:
        raise _http_error(exc) from exc


@router.get("/api/v1/records", response_model=List[InteractionRecord])
async def list_records(
    record_store: Annotated[Any, Depends(get_record_store)],
) -> List[InteractionRecord]:
    try:
        return record_store.list_records()
    except BridgeError as exc:
        raise _http_error(exc) from exc


@router.get("/api/v1/issues", response_model=List[InteractionRecord])
async def list_issues(
    record_store: Annotated[Any, Depends(get_record_store)],
) -> List[InteractionRecord]:
    try:
        return record_store.list_issues()
    except BridgeError as exc:
        raise _http_error(exc) from exc


@router.get("/api/v1/records/{record_id}", response_model=InteractionRecord)
async def get_record(
    record_id: str,
    record_store: Annotated[Any, Depends(get_record_store)],
) -> InteractionRecord:
    if not record_id.isdecimal():
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Invalid ID format")
    try:
        return record_store.get_record(int(record_id))
    except BridgeError as exc:
        raise _http_error(exc) from exc


@router.post(
    "/api/v1/records",
    response_model=InteractionRecord,
    status_code=HTTPStatus.CREATED,
)
async def create_record(
    payload: RecordCreateRequest,
    record_store: Annotated[Any, Depends(get_record_store)],
) -> InteractionRecord:
    try:
        return record_store.insert_record(
            user_id=payload.user_id,
            record_type=payload.type,
            details=payload.details,
            status=payload.status,
        )
    except BridgeError as exc:
        raise _http_error(exc) from exc
