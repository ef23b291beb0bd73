"""
Pydantic models for Converty orders and the filters used to query them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import AwareDatetime, BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_TIMESTAMP = TypeAdapter(AwareDatetime)


class Customer(BaseModel):
    """Customer details attached to an order."""

    name: str = ""
    address: str = ""
    note: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""


class Order(BaseModel):
    """A Converty order with its customer."""

    id: str
    customer: Customer = Field(default_factory=Customer)
    status: str = ""
    created_at: datetime


class OrderQuery(BaseModel):
    """Filters accepted by the Converty order listing."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    status: Optional[str] = None
    archived: Optional[bool] = None
    abandoned: Optional[bool] = None
    deleted: Optional[bool] = None
    search: Optional[str] = None
    product: Optional[str] = None
    delivery_company: Optional[str] = None

    def to_params(self, store_id: Optional[str] = None) -> Dict[str, str]:
        """Encode the filters as Converty query parameters, omitting unset ones."""
        params: Dict[str, str] = {}
        if store_id:
            params["store_id"] = store_id
        params["page"] = str(self.page)
        params["limit"] = str(self.limit)
        if self.status:
            params["status"] = self.status
        for name in ("archived", "abandoned", "deleted"):
            flag = getattr(self, name)
            if flag is not None:
                params[name] = "true" if flag else "false"
        if self.search:
            params["search"] = self.search
        if self.product:
            params["product"] = self.product
        if self.delivery_company:
            params["deliveryCompany"] = self.delivery_company
        return params


class OrdersEnvelope(BaseModel):
    """The ``{success, message, data}`` wrapper around order listings."""

    success: bool = False
    message: Optional[str] = ""
    data: Optional[List[Dict[str, Any]]] = None


def parse_created_at(raw: Any) -> datetime:
    """Parse an RFC 3339 timestamp, substituting the current time when invalid."""
    # RFC 3339 requires a time component; the adapter enforces the offset.
    if isinstance(raw, str) and "T" in raw.upper():
        try:
            return _TIMESTAMP.validate_python(raw.strip())
        except ValidationError:
            pass
    logger.debug("Unparsable order created_at %r; using current time", raw)
    return datetime.now(timezone.utc)


def order_from_item(item: Dict[str, Any]) -> Order:
    customer = item.get("customer") or {}
    if not isinstance(customer, dict):
        customer = {}
    return Order(
        id=str(item.get("id", "")),
        customer=Customer(
            **{
                key: str(value)
                for key, value in customer.items()
                if key in Customer.model_fields and value is not None
            }
        ),
        status=str(item.get("status") or ""),
        created_at=parse_created_at(item.get("created_at")),
    )


__all__ = [
    "Customer",
    "Order",
    "OrderQuery",
    "OrdersEnvelope",
    "order_from_item",
    "parse_created_at",
]
